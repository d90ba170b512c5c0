"""Scoring and fusion strategies."""
from .fusion import FusionStrategy, ReciprocalRankFusion
from .scoring import cosine_similarities, normalize_rank_score

__all__ = [
    "FusionStrategy",
    "ReciprocalRankFusion",
    "cosine_similarities",
    "normalize_rank_score",
]
