"""Domain models."""
from .document import (
    Chunk,
    ChunkType,
    Document,
    IndexStats,
    SearchMethod,
    SearchResult,
)

__all__ = [
    "Chunk",
    "ChunkType",
    "Document",
    "IndexStats",
    "SearchMethod",
    "SearchResult",
]
