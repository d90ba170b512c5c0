"""Index store protocol for dependency injection."""
from typing import Protocol, Sequence, runtime_checkable

from ..models.document import Chunk, IndexStats, SearchResult


@runtime_checkable
class IndexStoreProtocol(Protocol):
    """Protocol for the persistent chunk index."""

    def has_changed(self, collection: str, file_path: str, file_hash: str) -> bool:
        """Check whether a file differs from its indexed version.

        Args:
            collection: Collection name.
            file_path: Path relative to the collection root.
            file_hash: Current content hash.

        Returns:
            True if the file is unknown or its stored hash differs.
        """
        ...

    def index_document(
        self,
        collection: str,
        file_path: str,
        file_hash: str,
        chunks: Sequence[Chunk],
    ) -> None:
        """Atomically replace a document and its full chunk set.

        Raises:
            IndexStoreError: The replacement failed; prior state is kept.
        """
        ...

    def store_vectors(
        self, collection: str, file_path: str, vectors: Sequence[Sequence[float]]
    ) -> int:
        """Attach vectors to a document's chunks by ascending start line.

        Returns:
            Number of vectors stored.
        """
        ...

    def delete_document(self, collection: str, file_path: str) -> bool:
        """Delete a document with its chunks and vectors."""
        ...

    def document_paths(self, collection: str) -> list[str]:
        """List indexed paths of a collection."""
        ...

    def lexical_search(
        self, query: str, limit: int = 10, collection: str | None = None
    ) -> list[SearchResult]:
        """Keyword search, best first."""
        ...

    def vector_search(
        self,
        query_vector: Sequence[float],
        limit: int = 10,
        collection: str | None = None,
    ) -> list[SearchResult]:
        """Cosine similarity search, best first."""
        ...

    def stats(self) -> IndexStats:
        """Get index counters."""
        ...

    def close(self) -> None:
        """Release storage handles."""
        ...
