"""Score normalization and vector similarity."""

import numpy as np

# Norm products below this count as zero-length vectors.
ZERO_NORM_EPSILON = 1e-12


def normalize_rank_score(score: float) -> float:
    """Map a non-positive bm25 score to [0, 1), monotonic in |score|."""
    magnitude = abs(score)
    return magnitude / (1.0 + magnitude)


def cosine_similarities(query: np.ndarray, embeddings: list[np.ndarray]) -> np.ndarray:
    """Cosine similarity of a query against many vectors.

    Args:
        query: Query vector.
        embeddings: Stored vectors, possibly of varying length.

    Returns:
        One similarity per stored vector; mismatched or zero-length
        vectors get 0.
    """
    query = np.asarray(query, dtype=np.float64)
    scores = np.zeros(len(embeddings), dtype=np.float64)
    query_norm = np.linalg.norm(query)
    if not embeddings or query_norm < ZERO_NORM_EPSILON:
        return scores

    matching = [i for i, vec in enumerate(embeddings) if vec.shape == query.shape]
    if not matching:
        return scores

    matrix = np.vstack([embeddings[i] for i in matching]).astype(np.float64)
    denom = np.linalg.norm(matrix, axis=1) * query_norm
    dots = matrix @ query
    valid = denom >= ZERO_NORM_EPSILON
    sims = np.zeros(len(matching), dtype=np.float64)
    sims[valid] = dots[valid] / denom[valid]
    scores[matching] = sims
    return scores
