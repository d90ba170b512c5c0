"""Index domain models."""
from dataclasses import dataclass, field, replace
from enum import Enum


class ChunkType(str, Enum):
    """Coarse chunk classification."""
    CODE = "code"
    DOC = "doc"


class SearchMethod(str, Enum):
    """Retrieval pipeline that produced a result."""
    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


@dataclass(frozen=True)
class Chunk:
    """Contiguous line range of one file, ready for indexing."""
    file_path: str
    start_line: int  # 1-based
    end_line: int  # 1-based, inclusive
    content: str
    type: ChunkType
    language: str


@dataclass
class Document:
    """One indexed file within a collection."""
    collection: str
    file_path: str
    file_hash: str
    language: str
    indexed_at: str


@dataclass
class SearchResult:
    """Search result projected from a stored chunk."""
    file_path: str
    content: str
    start_line: int
    end_line: int
    language: str
    collection: str
    score: float
    method: SearchMethod

    @property
    def key(self) -> tuple[str, int]:
        """Logical location used for deduplication."""
        return (self.file_path, self.start_line)

    def with_method(self, method: SearchMethod, score: float | None = None) -> "SearchResult":
        return replace(
            self, method=method, score=self.score if score is None else score
        )


@dataclass
class IndexStats:
    """Index-wide counters."""
    document_count: int = 0
    chunk_count: int = 0
    vector_count: int = 0
    collections: list[str] = field(default_factory=list)
