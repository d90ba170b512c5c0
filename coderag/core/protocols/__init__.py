"""Protocol interfaces for dependency injection."""
from .embedder import EmbedderProtocol
from .index_store import IndexStoreProtocol

__all__ = [
    "EmbedderProtocol",
    "IndexStoreProtocol",
]
