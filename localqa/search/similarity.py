"""Cosine similarity and thresholded top-k ranking over vectors."""

from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..errors import DimensionMismatchError

logger = structlog.get_logger("localqa.search.similarity")

DEFAULT_THRESHOLD = 0.3
DEFAULT_TOP_K = 5


def cosine_similarity(a: np.ndarray, b: np.ndarray, strict: bool = False) -> float:
    """Cosine similarity clamped to ``[0, 1]``.

    Vectors of different lengths are truncated to the shorter one unless
    ``strict`` is set, in which case ``DimensionMismatchError`` is raised.
    Returns 0 when either vector has zero norm.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)

    if len(a) != len(b):
        if strict:
            raise DimensionMismatchError(len(a), len(b))
        n = min(len(a), len(b))
        a, b = a[:n], b[:n]

    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    similarity = float(np.dot(a, b) / (norm_a * norm_b))
    return min(max(similarity, 0.0), 1.0)


class SimilarityIndex:
    """Scores candidate vectors against a query and keeps the best ones.

    Candidates are identified by their position in the input sequence; the
    caller maps positions back to chunks. Equal scores keep input order.
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        top_k: int = DEFAULT_TOP_K,
        strict_dimensions: bool = False,
    ):
        self.threshold = threshold
        self.top_k = top_k
        self.strict_dimensions = strict_dimensions

    def similarity(self, a: np.ndarray, b: np.ndarray) -> float:
        return cosine_similarity(a, b, strict=self.strict_dimensions)

    def score(
        self,
        query_vector: np.ndarray,
        candidates: Sequence[Optional[np.ndarray]],
    ) -> List[float]:
        """Similarity of every candidate; a missing vector scores 0."""
        return [
            0.0 if vector is None else self.similarity(query_vector, vector)
            for vector in candidates
        ]

    def rank(
        self,
        scores: Sequence[float],
        threshold: Optional[float] = None,
        top_k: Optional[int] = None,
    ) -> List[Tuple[int, float]]:
        """Filter by threshold and return ``(position, score)`` best first.

        Raises ``ValueError`` for a negative ``top_k``.
        """
        threshold = self.threshold if threshold is None else threshold
        top_k = self.top_k if top_k is None else top_k
        if top_k < 0:
            raise ValueError(f"top_k must not be negative, got {top_k}")

        kept = [(i, s) for i, s in enumerate(scores) if s >= threshold]
        # sorted() is stable, so ties stay in candidate order
        kept = sorted(kept, key=lambda item: item[1], reverse=True)
        return kept[:top_k]

    def search(
        self,
        query_vector: np.ndarray,
        candidates: Sequence[Optional[np.ndarray]],
        threshold: Optional[float] = None,
        top_k: Optional[int] = None,
    ) -> List[Tuple[int, float]]:
        """Score ``candidates`` against ``query_vector`` and rank them."""
        return self.rank(self.score(query_vector, candidates), threshold, top_k)
