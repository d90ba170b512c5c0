"""Unit tests for the file chunker."""

import types
from pathlib import Path

import pytest

from coderag.core.chunking import Chunker, detect_language
from coderag.core.models.document import ChunkType


def ranges(chunks):
    return [(c.start_line, c.end_line) for c in chunks]


def numbered(count: int, prefix: str = "line") -> str:
    return "\n".join(f"{prefix} {i}" for i in range(1, count + 1))


class TestSmallFiles:
    """Tests for empty and single-chunk files."""

    def test_empty_content_yields_nothing(self):
        assert list(Chunker().chunk("a.txt", "")) == []

    def test_whitespace_only_content_yields_nothing(self):
        assert list(Chunker().chunk("a.txt", "  \n\t\n   ")) == []

    def test_five_line_file_is_one_chunk(self):
        chunks = list(Chunker().chunk("a.txt", numbered(5)))

        assert ranges(chunks) == [(1, 5)]
        assert chunks[0].file_path == "a.txt"
        assert chunks[0].type == ChunkType.CODE

    def test_header_names_file_and_line_range(self):
        chunks = list(Chunker().chunk("src/a.txt", "one\ntwo\nthree"))

        assert chunks[0].content == "// File: src/a.txt (lines 1-3)\none\ntwo\nthree"

    def test_trailing_newline_does_not_add_a_line(self):
        chunks = list(Chunker().chunk("a.txt", "one\ntwo\n"))

        assert ranges(chunks) == [(1, 2)]

    def test_only_newlines_end_lines(self):
        content = "a = 1\n\x0c\nb = 2\nc\u2028d\n"

        chunks = list(Chunker().chunk("m.py", content))

        assert ranges(chunks) == [(1, 4)]
        assert chunks[0].content == "// File: m.py (lines 1-4)\na = 1\n\x0c\nb = 2\nc\u2028d"

    def test_form_feeds_keep_window_line_numbers(self):
        content = "\n".join(f"line {i}\x0cpage" for i in range(1, 131))

        chunks = list(Chunker().chunk("notes.txt", content))

        assert ranges(chunks) == [(1, 60), (53, 112), (105, 130)]
        assert chunks[-1].content.split("\n")[-1] == "line 130\x0cpage"

    def test_file_at_max_size_is_one_chunk(self):
        chunks = list(Chunker(max_lines=60).chunk("a.py", numbered(60, "x =")))

        assert ranges(chunks) == [(1, 60)]

    def test_chunk_is_lazy(self):
        assert isinstance(Chunker().chunk("a.txt", "x"), types.GeneratorType)


class TestSlidingWindow:
    """Tests for the fixed-size window fallback."""

    def test_unknown_language_uses_windows(self):
        chunks = list(Chunker().chunk("notes.txt", numbered(130)))

        assert ranges(chunks) == [(1, 60), (53, 112), (105, 130)]

    def test_consecutive_windows_overlap_by_configured_lines(self):
        chunks = list(Chunker(max_lines=60, overlap_lines=8).chunk("notes.txt", numbered(250)))

        for previous, current in zip(chunks, chunks[1:-1]):
            assert previous.end_line - current.start_line + 1 == 8

    def test_final_window_is_clipped_to_last_line(self):
        chunks = list(Chunker().chunk("notes.txt", numbered(61)))

        assert chunks[-1].end_line == 61
        assert all(c.end_line <= 61 for c in chunks)

    def test_language_without_boundaries_found_uses_windows(self):
        content = "\n".join("    x = 1" for _ in range(100))

        chunks = list(Chunker().chunk("flat.py", content))

        assert ranges(chunks) == [(1, 60), (53, 100)]

    def test_overlap_must_be_smaller_than_window(self):
        with pytest.raises(ValueError):
            Chunker(max_lines=10, overlap_lines=10)


class TestBoundaryChunking:
    """Tests for boundary detection."""

    def test_typescript_exports_align_chunks(self, repo_dir: Path):
        content = (repo_dir / "src" / "handlers.ts").read_text()

        chunks = list(Chunker().chunk("src/handlers.ts", content))

        assert ranges(chunks) == [(1, 50), (51, 100), (101, 150), (151, 200)]
        assert chunks[1].content.splitlines()[1].startswith("export function betaHandler")
        assert all(c.language == "typescript" for c in chunks)

    def test_boundaries_closer_than_min_gap_are_ignored(self):
        lines = ["    pass"] * 70
        lines[0] = "def a():"
        lines[3] = "def b():"
        lines[10] = "def c():"

        chunks = list(Chunker().chunk("mod.py", "\n".join(lines)))

        assert ranges(chunks) == [(1, 10), (11, 70)]

    def test_deeply_indented_declarations_are_not_boundaries(self):
        lines = ["    pass"] * 70
        lines[0] = "class A:"
        lines[20] = "   def method(self):"
        lines[40] = "  def shallow():"

        chunks = list(Chunker().chunk("mod.py", "\n".join(lines)))

        assert ranges(chunks) == [(1, 40), (41, 70)]

    def test_oversized_segment_is_windowed_with_absolute_lines(self):
        lines = ["def big():"] + ["    x = 1"] * 149 + ["def small():"] + ["    pass"] * 9

        chunks = list(Chunker().chunk("mod.py", "\n".join(lines)))

        assert ranges(chunks) == [(1, 60), (53, 112), (105, 150), (151, 160)]
        assert chunks[1].content.startswith("// File: mod.py (lines 53-112)")

    def test_markdown_headings_split_docs(self):
        sections = []
        for title in ("Intro", "Usage", "Reference"):
            sections.append(f"## {title}")
            sections.extend(f"text about {title.lower()} {i}" for i in range(29))

        chunks = list(Chunker().chunk("README.md", "\n".join(sections)))

        assert ranges(chunks) == [(1, 30), (31, 60), (61, 90)]
        assert all(c.type == ChunkType.DOC for c in chunks)
        assert all(c.language == "markdown" for c in chunks)


class TestCoverage:
    """Chunks cover every line in ascending order."""

    @pytest.mark.parametrize("line_count", [1, 59, 60, 61, 97, 200, 333])
    def test_windows_cover_file(self, line_count):
        self._assert_covers(list(Chunker().chunk("notes.txt", numbered(line_count))), line_count)

    @pytest.mark.parametrize("line_count", [61, 150, 400])
    def test_boundary_chunks_cover_file(self, line_count):
        lines = [
            "def f{}():".format(i) if i % 37 == 0 else "    return {}".format(i)
            for i in range(line_count)
        ]
        self._assert_covers(list(Chunker().chunk("mod.py", "\n".join(lines))), line_count)

    @staticmethod
    def _assert_covers(chunks, line_count):
        covered = set()
        for chunk in chunks:
            covered.update(range(chunk.start_line, chunk.end_line + 1))
        assert covered == set(range(1, line_count + 1))

        starts = [c.start_line for c in chunks]
        assert starts == sorted(starts)


class TestChunkFile:
    """Tests for reading files from disk."""

    def test_header_uses_path_relative_to_root(self, repo_dir: Path):
        chunks = Chunker().chunk_file(repo_dir / "src" / "auth.py", root=repo_dir)

        assert chunks[0].file_path == "src/auth.py"
        assert chunks[0].content.startswith("// File: src/auth.py (lines 1-3)")

    def test_missing_file_yields_no_chunks(self, tmp_path: Path):
        assert Chunker().chunk_file(tmp_path / "missing.py") == []


class TestLanguageDetection:
    """Tests for extension based language detection."""

    @pytest.mark.parametrize(
        "path,language",
        [
            ("src/app.tsx", "typescript"),
            ("lib/mod.PY", "python"),
            ("docs/page.mdx", "markdown"),
            ("infra/main.tf", "terraform"),
            ("Dockerfile", "dockerfile"),
            ("build/Makefile", "makefile"),
        ],
    )
    def test_detect_language(self, path, language):
        assert detect_language(path) == language
