"""End-to-end tests for the command line entry point."""

import pytest

from conftest import FakeEmbedder

import coderag.container as container_module
from coderag.config.settings import Settings
from coderag.presentation import cli


@pytest.fixture
def cli_settings(tmp_path, monkeypatch):
    test_settings = Settings(
        data_dir=str(tmp_path / "data"),
        embedding_provider="none",
        openai_api_key=None,
        embedding_base_url=None,
    )
    monkeypatch.setattr(cli, "settings", test_settings)
    return test_settings


class TestCli:
    """Tests for command dispatch."""

    def test_no_command_prints_usage(self, cli_settings, capsys):
        assert cli.main([]) == 1
        assert "Usage: coderag" in capsys.readouterr().out

    def test_unknown_command(self, cli_settings, capsys):
        assert cli.main(["explode"]) == 1
        assert "Unknown command: explode" in capsys.readouterr().out

    def test_index_then_search(self, cli_settings, repo_dir, capsys):
        assert cli.main(["index", str(repo_dir), "--no-embed"]) == 0

        assert cli.main(["search", "password", "--limit=3"]) == 0
        out = capsys.readouterr().out
        assert "src/auth.py:1-3" in out
        assert "keyword" in out

    def test_stats_lists_collection(self, cli_settings, repo_dir, capsys):
        cli.main(["index", str(repo_dir), "--no-embed", "--collection=demo"])
        capsys.readouterr()

        assert cli.main(["stats"]) == 0
        out = capsys.readouterr().out
        assert "Files:       4" in out
        assert "Collections: demo" in out

    def test_semantic_search_unavailable(self, cli_settings, capsys):
        assert cli.main(["vsearch", "how", "does", "auth", "work"]) == 1
        assert "Semantic search unavailable" in capsys.readouterr().out

    def test_hybrid_query_without_embeddings_uses_keywords(self, cli_settings, repo_dir, capsys):
        cli.main(["index", str(repo_dir), "--no-embed"])
        capsys.readouterr()

        assert cli.main(["query", "charge_invoice"]) == 0
        assert "src/billing.py:1-3" in capsys.readouterr().out

    def test_search_requires_query(self, cli_settings, capsys):
        assert cli.main(["search"]) == 1
        assert "Usage: coderag search" in capsys.readouterr().out

    def test_non_numeric_limit_prints_usage(self, cli_settings, capsys):
        assert cli.main(["search", "password", "--limit=abc"]) == 1
        assert "Usage: coderag search" in capsys.readouterr().out


class BrokenWarmupEmbedder(FakeEmbedder):
    def warmup(self) -> None:
        raise RuntimeError("model download failed")


@pytest.fixture
def cli_embedder(cli_settings, monkeypatch):
    embedder = FakeEmbedder()
    monkeypatch.setattr(container_module, "create_embedder", lambda _settings: embedder)
    return embedder


class TestCliEmbedderWarmup:
    """The embedder is loaded before indexing and semantic searches."""

    def test_index_warms_up_and_embeds(self, cli_embedder, repo_dir, capsys):
        assert cli.main(["index", str(repo_dir)]) == 0

        assert cli_embedder.warmups == 1
        assert cli_embedder.calls

    def test_index_without_embeddings_skips_warmup(self, cli_embedder, repo_dir):
        assert cli.main(["index", str(repo_dir), "--no-embed"]) == 0

        assert cli_embedder.warmups == 0

    def test_hybrid_query_warms_up_before_search(self, cli_embedder, repo_dir, capsys):
        cli.main(["index", str(repo_dir), "--no-embed"])

        assert cli.main(["query", "charge_invoice"]) == 0
        assert cli_embedder.warmups == 1
        assert "hybrid" in capsys.readouterr().out

    def test_keyword_search_does_not_warm_up(self, cli_embedder, repo_dir):
        cli.main(["index", str(repo_dir), "--no-embed"])

        assert cli.main(["search", "password"]) == 0
        assert cli_embedder.warmups == 0

    def test_failed_warmup_still_searches(self, cli_settings, repo_dir, monkeypatch, capsys):
        monkeypatch.setattr(
            container_module, "create_embedder", lambda _settings: BrokenWarmupEmbedder()
        )
        cli.main(["index", str(repo_dir), "--no-embed"])
        capsys.readouterr()

        assert cli.main(["query", "charge_invoice"]) == 0
        assert "src/billing.py:1-3" in capsys.readouterr().out
