"""Search service - keyword, semantic and hybrid retrieval."""

import logging
from typing import Optional

from ..errors import EmbeddingUnavailableError
from ..models.document import IndexStats, SearchResult
from ..protocols.embedder import EmbedderProtocol
from ..protocols.index_store import IndexStoreProtocol
from ..strategies.fusion import FusionStrategy, ReciprocalRankFusion

logger = logging.getLogger(__name__)


class SearchService:
    """Search service combining keyword and vector retrieval."""

    def __init__(
        self,
        store: IndexStoreProtocol,
        embedder: Optional[EmbedderProtocol] = None,
        fusion: Optional[FusionStrategy] = None,
        default_limit: int = 10,
        candidate_factor: int = 2,
    ):
        """Initialize search service.

        Args:
            store: Index store.
            embedder: Embedding capability, None for keyword-only search.
            fusion: Fusion strategy for hybrid search.
            default_limit: Number of results when no limit is given.
            candidate_factor: Hybrid search fetches limit * factor
                candidates from each source.
        """
        self._store = store
        self._embedder = embedder
        self._fusion = fusion or ReciprocalRankFusion()
        self._default_limit = default_limit
        self._candidate_factor = candidate_factor

    @property
    def semantic_available(self) -> bool:
        return self._embedder is not None

    def keyword(
        self, query: str, limit: Optional[int] = None, collection: Optional[str] = None
    ) -> list[SearchResult]:
        """Keyword search, no embedding needed."""
        limit = self._default_limit if limit is None else limit
        return self._store.lexical_search(query, limit, collection=collection)

    def semantic(
        self, query: str, limit: Optional[int] = None, collection: Optional[str] = None
    ) -> list[SearchResult]:
        """Vector search.

        Raises:
            EmbeddingUnavailableError: No embedder, or the query could
                not be embedded.
        """
        limit = self._default_limit if limit is None else limit
        if self._embedder is None:
            raise EmbeddingUnavailableError("No embedding provider configured")

        try:
            query_vector = self._embed_query(query)
        except Exception as e:
            raise EmbeddingUnavailableError(f"Query embedding failed: {e}") from e

        return self._store.vector_search(query_vector, limit, collection=collection)

    def hybrid(
        self, query: str, limit: Optional[int] = None, collection: Optional[str] = None
    ) -> list[SearchResult]:
        """Keyword and vector search fused into one ranking.

        Falls back to keyword-only results when no query vector is available.
        """
        limit = self._default_limit if limit is None else limit
        candidates = limit * self._candidate_factor

        keyword_results = self._store.lexical_search(query, candidates, collection=collection)

        vector_results = None
        if self._embedder is not None:
            try:
                query_vector = self._embed_query(query)
                vector_results = self._store.vector_search(
                    query_vector, candidates, collection=collection
                )
            except Exception as e:
                logger.warning(f"Semantic step failed, using keyword results only: {e}")

        results = self._fusion.fuse(keyword_results, vector_results, limit)

        logger.info(f"Hybrid search: returned {len(results)}/{limit} results for '{query[:50]}'")
        return results

    def stats(self) -> IndexStats:
        return self._store.stats()

    def _embed_query(self, query: str) -> list[float]:
        vectors = self._embedder.embed([query])
        if not vectors:
            raise ValueError("embedding provider returned no vector")
        return vectors[0]
