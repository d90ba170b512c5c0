
import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..models.document import SearchMethod, SearchResult

logger = logging.getLogger(__name__)


class FusionStrategy(ABC):
    """Base class for result-list fusion."""

    @abstractmethod
    def fuse(
        self,
        keyword: list[SearchResult],
        vector: Optional[list[SearchResult]],
        limit: int,
    ) -> list[SearchResult]:
        """Merge ranked lists into one."""
        ...


class ReciprocalRankFusion(FusionStrategy):
    """Merge keyword and vector rankings by summed 1 / (k + rank)."""

    def __init__(self, k: int = 60):
        """Initialize strategy.

        Args:
            k: Rank damping constant.
        """
        self._k = k

    def contribution(self, rank: int) -> float:
        """Score contributed by a 1-based rank."""
        return 1.0 / (self._k + rank)

    def fuse(
        self,
        keyword: list[SearchResult],
        vector: Optional[list[SearchResult]],
        limit: int,
    ) -> list[SearchResult]:
        """Fuse keyword and vector results.

        Without a vector list the keyword list is returned as is. Results
        with equal fused scores keep keyword-then-vector discovery order.
        """
        if limit <= 0:
            return []

        if vector is None:
            return [r.with_method(SearchMethod.KEYWORD) for r in keyword[:limit]]

        # Insertion order is the tie-break order.
        scores: dict[tuple[str, int], float] = {}
        results: dict[tuple[str, int], SearchResult] = {}

        for ranked in (keyword, vector):
            for rank, result in enumerate(ranked, 1):
                key = result.key
                if key not in results:
                    results[key] = result
                    scores[key] = 0.0
                scores[key] += self.contribution(rank)

        ordered = sorted(scores, key=lambda key: scores[key], reverse=True)

        fused = [
            results[key].with_method(SearchMethod.HYBRID, score=scores[key])
            for key in ordered[:limit]
        ]

        logger.debug(
            f"RRF: {len(keyword)} keyword + {len(vector)} vector -> {len(fused)} results"
        )
        return fused
