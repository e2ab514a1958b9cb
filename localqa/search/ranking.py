"""Hybrid re-ranking of vector search results.

Vector similarity is blended with a literal keyword signal: every occurrence
of a query keyword in the chunk text adds ``keyword_weight`` to the score.
The combined score is additive and may exceed 1.
"""

from dataclasses import replace
from typing import List, Optional, Sequence

import structlog

from ..models import SearchResult

logger = structlog.get_logger("localqa.search.ranking")

DEFAULT_KEYWORD_WEIGHT = 0.1
MIN_KEYWORD_LENGTH = 3


def extract_keywords(query: str) -> List[str]:
    """Lowercase whitespace-split query words longer than two characters."""
    return [word for word in query.lower().split() if len(word) >= MIN_KEYWORD_LENGTH]


class HybridRanker:
    """Re-ranks vector results by similarity plus keyword occurrences."""

    def __init__(self, keyword_weight: float = DEFAULT_KEYWORD_WEIGHT):
        self.keyword_weight = keyword_weight

    def keyword_score(self, keywords: Sequence[str], text: str) -> float:
        """Weighted count of keyword occurrences in ``text``.

        Occurrences are non-overlapping literal substring matches, so
        ``"cat"`` also counts inside ``"concatenate"``.
        """
        lowered = text.lower()
        matches = sum(lowered.count(keyword) for keyword in keywords)
        return matches * self.keyword_weight

    def rerank(
        self,
        query: str,
        results: Sequence[SearchResult],
        top_k: Optional[int] = None,
    ) -> List[SearchResult]:
        """Score, re-sort, and truncate ``results``.

        Returns new ``SearchResult`` objects with ``keyword_score``,
        ``combined_score`` and 1-based ``rank`` filled in. Results with equal
        combined scores keep their incoming order.
        """
        if top_k is not None and top_k < 0:
            raise ValueError(f"top_k must not be negative, got {top_k}")
        keywords = extract_keywords(query)

        scored = []
        for result in results:
            keyword_score = self.keyword_score(keywords, result.chunk.text)
            scored.append(replace(
                result,
                keyword_score=keyword_score,
                combined_score=result.similarity + keyword_score,
            ))

        scored.sort(key=lambda r: r.combined_score, reverse=True)
        if top_k is not None:
            scored = scored[:top_k]

        reranked = [replace(r, rank=i + 1) for i, r in enumerate(scored)]

        logger.debug(
            "Results reranked",
            keywords=keywords,
            original_count=len(results),
            reranked_count=len(reranked),
        )
        return reranked
