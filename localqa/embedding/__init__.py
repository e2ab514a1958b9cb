"""Term statistics and vector encoding.

Primary components:
- ``vocabulary``: tokenization and the immutable ``VocabularyModel`` snapshot.
- ``encoder``: the hashing-trick ``VectorEncoder``.
"""

from .encoder import VectorEncoder, hash_positions, term_hash, zero_vector
from .vocabulary import EMPTY_VOCABULARY, VocabularyModel, build_vocabulary, tokenize

__all__ = [
    "VectorEncoder",
    "hash_positions",
    "term_hash",
    "zero_vector",
    "EMPTY_VOCABULARY",
    "VocabularyModel",
    "build_vocabulary",
    "tokenize",
]
