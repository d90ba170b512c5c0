"""Chunker - splits file content into line-range retrieval units."""

import logging
import os
from pathlib import Path
from typing import Iterator, Optional

from ..models.document import Chunk, ChunkType
from .languages import boundary_patterns, detect_language, is_doc_language

logger = logging.getLogger(__name__)


class Chunker:
    """Split files on logical boundaries, falling back to line windows."""

    def __init__(
        self,
        max_lines: int = 60,
        overlap_lines: int = 8,
        min_gap: int = 5,
        oversize_factor: float = 1.5,
        max_indent: int = 2,
    ):
        """Initialize chunker.

        Args:
            max_lines: Maximum lines per chunk and sliding window size.
            overlap_lines: Overlap between consecutive windows.
            min_gap: Minimum distance between accepted boundaries.
            oversize_factor: Segments longer than max_lines * factor
                are re-split with the sliding window.
            max_indent: Deepest indentation a boundary line may have.
        """
        if overlap_lines >= max_lines:
            raise ValueError("overlap_lines must be smaller than max_lines")
        self._max_lines = max_lines
        self._overlap_lines = overlap_lines
        self._min_gap = min_gap
        self._oversize_limit = max_lines * oversize_factor
        self._max_indent = max_indent

    def chunk(self, file_path: str, content: str) -> Iterator[Chunk]:
        """Chunk file content.

        Args:
            file_path: Path relative to the indexing root.
            content: Raw file text.

        Yields:
            Chunks in ascending start-line order.
        """
        if not content.strip():
            return

        language = detect_language(file_path)
        chunk_type = ChunkType.DOC if is_doc_language(language) else ChunkType.CODE
        # Only "\n" ends a line; form feeds and U+2028 stay inside it.
        lines = content.split("\n")
        if lines[-1] == "":
            lines.pop()

        if len(lines) <= self._max_lines:
            yield self._make_chunk(file_path, lines, 1, chunk_type, language)
            return

        boundaries = self._find_boundaries(lines, language)
        if len(boundaries) > 1:
            yield from self._chunk_by_boundaries(
                file_path, lines, boundaries, chunk_type, language
            )
        else:
            yield from self._chunk_by_window(file_path, lines, chunk_type, language)

    def chunk_file(self, path: str | Path, root: Optional[str | Path] = None) -> list[Chunk]:
        """Read and chunk a file.

        Args:
            path: File path.
            root: Indexing root; the header names the path relative to it.

        Returns:
            List of chunks, empty if the file cannot be read.
        """
        path = Path(path)
        try:
            content = path.read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            logger.warning(f"Cannot read {path}: {e}")
            return []

        rel_path = os.path.relpath(path, root) if root is not None else str(path)
        return list(self.chunk(Path(rel_path).as_posix(), content))

    def _find_boundaries(self, lines: list[str], language: str) -> list[int]:
        patterns = boundary_patterns(language)
        if not patterns:
            return []

        boundaries = [0]
        for i in range(1, len(lines)):
            stripped = lines[i].lstrip()
            if len(lines[i]) - len(stripped) > self._max_indent:
                continue

            for pattern in patterns:
                if pattern.match(stripped):
                    if i - boundaries[-1] >= self._min_gap:
                        boundaries.append(i)
                    break

        return boundaries

    def _chunk_by_boundaries(
        self,
        file_path: str,
        lines: list[str],
        boundaries: list[int],
        chunk_type: ChunkType,
        language: str,
    ) -> Iterator[Chunk]:
        ends = boundaries[1:] + [len(lines)]
        for start, end in zip(boundaries, ends):
            segment = lines[start:end]
            if len(segment) > self._oversize_limit:
                yield from self._chunk_by_window(
                    file_path, segment, chunk_type, language, line_offset=start + 1
                )
            else:
                yield self._make_chunk(file_path, segment, start + 1, chunk_type, language)

    def _chunk_by_window(
        self,
        file_path: str,
        lines: list[str],
        chunk_type: ChunkType,
        language: str,
        line_offset: int = 1,
    ) -> Iterator[Chunk]:
        stride = self._max_lines - self._overlap_lines
        pos = 0
        while pos < len(lines):
            end = min(pos + self._max_lines, len(lines))
            yield self._make_chunk(
                file_path, lines[pos:end], pos + line_offset, chunk_type, language
            )
            if end >= len(lines):
                break
            pos += stride

    def _make_chunk(
        self,
        file_path: str,
        lines: list[str],
        start_line: int,
        chunk_type: ChunkType,
        language: str,
    ) -> Chunk:
        end_line = start_line + len(lines) - 1
        header = f"// File: {file_path} (lines {start_line}-{end_line})"
        return Chunk(
            file_path=file_path,
            start_line=start_line,
            end_line=end_line,
            content="\n".join([header, *lines]),
            type=chunk_type,
            language=language,
        )
