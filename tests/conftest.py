"""Shared fixtures for the coderag test suite."""

import re
import zlib
from pathlib import Path

import pytest

from coderag.core.models.document import Chunk, ChunkType
from coderag.infrastructure.index_stores.sqlite_store import SQLiteIndexStore

TOKEN_RE = re.compile(r"[a-z]+")


class FakeEmbedder:
    """Deterministic bag-of-words embedder."""

    def __init__(self, dimensions: int = 64):
        self._dimensions = dimensions
        self.calls: list[list[str]] = []
        self.warmups = 0

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def model_name(self) -> str:
        return "fake-bag-of-words"

    def warmup(self) -> None:
        self.warmups += 1

    def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        vectors = []
        for text in texts:
            vector = [0.0] * self._dimensions
            for token in TOKEN_RE.findall(text.lower()):
                vector[zlib.crc32(token.encode()) % self._dimensions] += 1.0
            vectors.append(vector)
        return vectors


class FailingEmbedder(FakeEmbedder):
    """Fails for every call, or only for texts containing a marker."""

    def __init__(self, marker: str | None = None):
        super().__init__()
        self._marker = marker

    def embed(self, texts: list[str]) -> list[list[float]]:
        if self._marker is None or any(self._marker in text for text in texts):
            raise RuntimeError("embedding backend unavailable")
        return super().embed(texts)


def make_chunk(
    file_path: str,
    start_line: int,
    end_line: int,
    body: str,
    language: str = "python",
) -> Chunk:
    return Chunk(
        file_path=file_path,
        start_line=start_line,
        end_line=end_line,
        content=f"// File: {file_path} (lines {start_line}-{end_line})\n{body}",
        type=ChunkType.CODE,
        language=language,
    )


@pytest.fixture
def store(tmp_path: Path):
    index_store = SQLiteIndexStore(tmp_path / "data")
    yield index_store
    index_store.close()


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    """Small checkout with python, markdown and a long typescript file."""
    root = tmp_path / "sample-repo"
    (root / "src").mkdir(parents=True)
    (root / "docs").mkdir()

    (root / "src" / "auth.py").write_text(
        "def authenticate(user, password):\n"
        "    token = issue_token(user)\n"
        "    return token\n"
    )
    (root / "src" / "billing.py").write_text(
        "def charge_invoice(invoice):\n"
        "    total = invoice.amount\n"
        "    return total\n"
    )
    (root / "docs" / "guide.md").write_text(
        "# Guide\n\nHow authentication works in this service.\n"
    )

    ts_lines = []
    for name in ("alpha", "beta", "gamma", "delta"):
        ts_lines.append(f"export function {name}Handler(input: string) {{")
        ts_lines.extend(f"    const step{i} = input + '{name}';" for i in range(48))
        ts_lines.append("}")
    (root / "src" / "handlers.ts").write_text("\n".join(ts_lines) + "\n")
    return root
