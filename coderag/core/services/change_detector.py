"""Change detection for incremental indexing."""

import hashlib

from ..protocols.index_store import IndexStoreProtocol


class ChangeDetector:
    """Decide whether a file needs re-indexing. Never writes."""

    def __init__(self, store: IndexStoreProtocol):
        self._store = store

    @staticmethod
    def compute_hash(data: bytes) -> str:
        """Compute content hash."""
        return hashlib.sha256(data).hexdigest()

    def has_changed(self, collection: str, file_path: str, file_hash: str) -> bool:
        return self._store.has_changed(collection, file_path, file_hash)
