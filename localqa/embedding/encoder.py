"""Hashing-trick vector encoder.

Maps text onto a fixed-dimension vector without keeping a term index:

1. Tokenize (see ``vocabulary.tokenize``), first ``max_terms`` terms only
2. ``tf = count / total_terms``; ``weight = tf * idf(term)``
3. Hash each term with a 32-bit rolling polynomial hash
   (``h = (h * 31 + ord(ch)) mod 2**32``) and add ``weight`` at the
   ``hash_count`` positions ``(h + i * 123456789) mod dimension``
4. L2-normalize; a vector with no recognized terms stays exactly zero

The hash constants are part of the stored format: vectors produced with
different constants or dimensions cannot be compared.
"""

import asyncio
import time
from collections import Counter
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..common.config import HASH_COUNT, VECTOR_DIMENSION
from ..common.metrics import MetricsCollector, get_metrics_collector
from ..errors import NotInitializedError
from ..models import Chunk
from .vocabulary import (
    EMPTY_VOCABULARY,
    MAX_TERM_LENGTH,
    MAX_TERMS,
    MIN_TERM_LENGTH,
    VocabularyModel,
    tokenize,
)

logger = structlog.get_logger("localqa.embedding.encoder")

ProgressCallback = Callable[[float, str], None]

HASH_MULTIPLIER = 31
HASH_MODULUS = 2 ** 32
POSITION_STRIDE = 123456789


def term_hash(term: str) -> int:
    """32-bit rolling polynomial hash of a term."""
    h = 0
    for ch in term:
        h = (h * HASH_MULTIPLIER + ord(ch)) % HASH_MODULUS
    return h


def hash_positions(
    term: str,
    dimension: int = VECTOR_DIMENSION,
    hash_count: int = HASH_COUNT,
) -> List[int]:
    """Vector positions a term contributes to."""
    h = abs(term_hash(term))
    return [(h + i * POSITION_STRIDE) % dimension for i in range(hash_count)]


def zero_vector(dimension: int = VECTOR_DIMENSION) -> np.ndarray:
    return np.zeros(dimension, dtype=np.float32)


class VectorEncoder:
    """Encodes chunks and queries into normalized hashed term vectors.

    Notes
    - ``initialize`` must run once before encoding; it is idempotent
    - The vocabulary snapshot is always passed in explicitly, never held
    - ``encode_batch`` isolates per-chunk failures behind zero vectors
    """

    def __init__(
        self,
        dimension: int = VECTOR_DIMENSION,
        hash_count: int = HASH_COUNT,
        max_terms: int = MAX_TERMS,
        min_term_length: int = MIN_TERM_LENGTH,
        max_term_length: int = MAX_TERM_LENGTH,
        yield_interval: int = 32,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Create an encoder.

        Parameters
        - dimension: Output vector length
        - hash_count: Positions each term is hashed to
        - max_terms: Cap on terms read from one text
        - yield_interval: Items encoded between cooperative yields in batches
        """
        self.dimension = dimension
        self.hash_count = hash_count
        self.max_terms = max_terms
        self.min_term_length = min_term_length
        self.max_term_length = max_term_length
        self.yield_interval = max(yield_interval, 1)
        self.metrics = metrics or get_metrics_collector()
        self.is_initialized = False

    async def initialize(self, progress_callback: Optional[ProgressCallback] = None) -> bool:
        """Mark the encoder ready for use.

        Nothing is loaded; the hashing encoder only needs its constants. The
        callback still receives the start and end of the phase so callers can
        treat every encoder the same way.
        """
        if self.is_initialized:
            return True

        if progress_callback:
            progress_callback(0, "Preparing encoder...")

        self.is_initialized = True

        logger.info(
            "Encoder initialized",
            dimension=self.dimension,
            hash_count=self.hash_count,
            max_terms=self.max_terms,
        )
        if progress_callback:
            progress_callback(100, "Encoder ready")
        return True

    def _ensure_initialized(self) -> None:
        if not self.is_initialized:
            raise NotInitializedError("Encoder not initialized. Call initialize() first.")

    def encode(self, text: str, model: Optional[VocabularyModel] = None) -> np.ndarray:
        """Encode one text against a vocabulary snapshot.

        Pure function of ``(text, model)`` and the encoder constants.
        """
        self._ensure_initialized()
        model = model or EMPTY_VOCABULARY

        terms = tokenize(text, self.max_terms, self.min_term_length, self.max_term_length)
        vector = np.zeros(self.dimension, dtype=np.float64)
        if not terms:
            return vector.astype(np.float32)

        total = len(terms)
        for term, count in Counter(terms).items():
            weight = (count / total) * model.idf_for(term)
            for position in hash_positions(term, self.dimension, self.hash_count):
                vector[position] += weight

        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector.astype(np.float32)
        return (vector / norm).astype(np.float32)

    async def encode_batch(
        self,
        chunks: Sequence[Chunk],
        model: VocabularyModel,
        progress_callback: Optional[ProgressCallback] = None,
        progress_range: Tuple[float, float] = (60.0, 90.0),
    ) -> List[np.ndarray]:
        """Encode every chunk of a batch against the same snapshot.

        Returns one vector per chunk in input order. A chunk that fails to
        encode gets the zero vector; the batch keeps going. A progress callback
        that raises is dropped for the rest of the batch.

        Raises
        - ``NotInitializedError`` before any chunk is touched if the encoder
          has not been initialized
        """
        self._ensure_initialized()

        start_time = time.time()
        start_pct, end_pct = progress_range
        total = len(chunks)
        vectors: List[np.ndarray] = []
        fallbacks = 0

        for i, chunk in enumerate(chunks):
            try:
                vectors.append(self.encode(chunk.text, model))
            except Exception as e:
                logger.warning(
                    "Chunk encoding failed, using zero vector",
                    document_id=getattr(chunk, "document_id", None),
                    chunk_index=getattr(chunk, "chunk_index", i),
                    error=str(e),
                )
                vectors.append(zero_vector(self.dimension))
                fallbacks += 1

            if progress_callback:
                progress = start_pct + ((i + 1) / total) * (end_pct - start_pct)
                try:
                    progress_callback(progress, f"Generating embeddings: {i + 1}/{total}")
                except Exception as e:
                    logger.warning("Progress callback failed, no further progress reported", error=str(e))
                    progress_callback = None

            if (i + 1) % self.yield_interval == 0:
                await asyncio.sleep(0)

        duration = time.time() - start_time
        self.metrics.record_embedding("ok", total - fallbacks)
        if fallbacks:
            self.metrics.record_embedding("fallback", fallbacks)
        self.metrics.record_embedding_batch(duration)

        logger.info(
            "Batch encoded",
            chunks=total,
            fallbacks=fallbacks,
            vocabulary_version=model.version,
            duration_ms=duration * 1000,
        )
        return vectors
