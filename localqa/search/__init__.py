"""Search and ranking components.

This package contains vector similarity search, the hybrid keyword
re-ranker, query suggestions, and the manager that combines them over a
chunk source.

Contents
- ``similarity``: cosine similarity and thresholded top-k ranking
- ``ranking``: keyword-boosted hybrid re-ranking
- ``suggestions``: example queries from stored text
- ``search_manager``: query encoding and result assembly
"""

from .ranking import HybridRanker, extract_keywords
from .search_manager import SearchManager
from .similarity import SimilarityIndex, cosine_similarity
from .suggestions import SuggestionExtractor

__all__ = [
    "HybridRanker",
    "extract_keywords",
    "SearchManager",
    "SimilarityIndex",
    "cosine_similarity",
    "SuggestionExtractor",
]
