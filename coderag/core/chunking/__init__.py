"""File chunking."""
from .chunker import Chunker
from .languages import detect_language

__all__ = [
    "Chunker",
    "detect_language",
]
