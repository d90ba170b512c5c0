"""Ingest service - source file indexing."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..chunking.chunker import Chunker
from ..errors import IndexStoreError
from ..models.document import Chunk
from ..protocols.embedder import EmbedderProtocol
from ..protocols.index_store import IndexStoreProtocol
from .change_detector import ChangeDetector

logger = logging.getLogger(__name__)


@dataclass
class IngestReport:
    """Outcome of one indexing run."""
    indexed: int = 0
    skipped: int = 0
    embedded_chunks: int = 0
    removed: int = 0
    failed: list[str] = field(default_factory=list)
    embed_failures: list[str] = field(default_factory=list)


class IngestService:
    """Service for indexing source files into the index store."""

    def __init__(
        self,
        store: IndexStoreProtocol,
        chunker: Chunker,
        change_detector: ChangeDetector,
        embedder: Optional[EmbedderProtocol] = None,
    ):
        """Initialize ingest service.

        Args:
            store: Index store.
            chunker: File chunker.
            change_detector: Content-hash change detector.
            embedder: Embedding capability, None for keyword-only indexing.
        """
        self._store = store
        self._chunker = chunker
        self._change_detector = change_detector
        self._embedder = embedder

    def run(
        self,
        collection: str,
        root: str | Path,
        files: Iterable[str | Path],
        embed: bool = True,
        force: bool = False,
        prune: bool = False,
    ) -> IngestReport:
        """Index files of a collection.

        Args:
            collection: Collection name.
            root: Collection root; stored paths are relative to it.
            files: Absolute paths of indexable files.
            embed: Embed re-indexed chunks when an embedder is configured.
            force: Re-index files even when unchanged.
            prune: Delete documents whose files are no longer listed.

        Returns:
            Indexing report.
        """
        report = IngestReport()
        pending: list[tuple[str, list[Chunk]]] = []
        seen: set[str] = set()

        for file_path in files:
            rel_path = Path(os.path.relpath(file_path, root)).as_posix()
            seen.add(rel_path)

            try:
                data = Path(file_path).read_bytes()
            except OSError as e:
                logger.error(f"Failed to read {file_path}: {e}")
                report.failed.append(rel_path)
                continue

            file_hash = self._change_detector.compute_hash(data)
            if not force and not self._change_detector.has_changed(collection, rel_path, file_hash):
                logger.debug(f"Skip unchanged: {rel_path}")
                report.skipped += 1
                continue

            content = data.decode("utf-8", errors="replace")
            chunks = list(self._chunker.chunk(rel_path, content))
            if not chunks:
                continue

            try:
                self._store.index_document(collection, rel_path, file_hash, chunks)
            except IndexStoreError as e:
                logger.error(f"Failed to index {rel_path}: {e}")
                report.failed.append(rel_path)
                continue

            pending.append((rel_path, chunks))
            report.indexed += 1

        logger.info(f"Indexed {report.indexed} files, skipped {report.skipped} unchanged")

        if prune:
            report.removed = self._prune(collection, seen)

        if embed and pending:
            if self._embedder is None:
                logger.warning("No embedding provider configured, skipping embeddings")
            else:
                self._embed_pending(collection, pending, report)

        return report

    def _embed_pending(
        self,
        collection: str,
        pending: list[tuple[str, list[Chunk]]],
        report: IngestReport,
    ) -> None:
        """Embed chunks of re-indexed files; a failure skips only that file."""
        logger.info(f"Generating embeddings with {self._embedder.model_name}...")

        for rel_path, chunks in pending:
            # Vectors attach to chunks by ascending start line.
            ordered = sorted(chunks, key=lambda c: c.start_line)
            try:
                vectors = self._embedder.embed([c.content for c in ordered])
                stored = self._store.store_vectors(collection, rel_path, vectors)
            except Exception as e:
                logger.error(f"Failed to embed {rel_path}: {e}")
                report.embed_failures.append(rel_path)
                continue

            report.embedded_chunks += stored
            logger.info(f"Embedded {rel_path} ({stored} chunks)")

        logger.info(
            f"Embedded {report.embedded_chunks} chunks across "
            f"{len(pending) - len(report.embed_failures)} files"
        )

    def _prune(self, collection: str, seen: set[str]) -> int:
        removed = 0
        for rel_path in self._store.document_paths(collection):
            if rel_path in seen:
                continue
            try:
                if self._store.delete_document(collection, rel_path):
                    removed += 1
            except IndexStoreError as e:
                logger.error(f"Failed to remove {rel_path}: {e}")

        if removed:
            logger.info(f"Removed {removed} deleted files from {collection}")
        return removed
