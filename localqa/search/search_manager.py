"""Search manager for vector and hybrid search over stored chunks.

Encodes the query, scores stored chunk vectors, and returns ranked results
enriched with document metadata. Hybrid search widens the vector candidate
set and re-ranks it with keyword occurrences.

Each document's vectors were encoded against that document's own vocabulary
snapshot, so the query is encoded once per distinct snapshot and every chunk
is compared with the query vector built from the same statistics.
"""

import time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..common.config import SearchConfig
from ..common.logging import log_performance
from ..common.metrics import MetricsCollector, get_metrics_collector
from ..embedding.encoder import VectorEncoder
from ..embedding.vocabulary import EMPTY_VOCABULARY
from ..errors import EmptyInputError, NotInitializedError
from ..models import Chunk, DocumentRecord, SearchResponse, SearchResult, Suggestion
from ..store.base import ChunkSource
from .ranking import HybridRanker
from .similarity import DEFAULT_TOP_K, SimilarityIndex
from .suggestions import SuggestionExtractor

logger = structlog.get_logger("localqa.search.search_manager")


class SearchManager:
    """Manages search operations over a ``ChunkSource``.

    Responsibilities
    - Encode queries with the right vocabulary snapshot
    - Score and rank stored vectors
    - Re-rank with keyword matches for hybrid search
    - Offer query suggestions from stored text
    """

    def __init__(
        self,
        source: ChunkSource,
        encoder: VectorEncoder,
        index: Optional[SimilarityIndex] = None,
        ranker: Optional[HybridRanker] = None,
        suggester: Optional[SuggestionExtractor] = None,
        default_top_k: int = DEFAULT_TOP_K,
        suggestion_limit: int = 5,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Construct a search manager.

        Parameters
        - source: Where chunks, vectors, and vocabularies are read from
        - encoder: Initialized (or later initialized) query encoder
        - default_top_k: Result count when callers do not pass ``top_k``
        """
        self.source = source
        self.encoder = encoder
        self.index = index or SimilarityIndex()
        self.ranker = ranker or HybridRanker()
        self.suggester = suggester or SuggestionExtractor()
        self.default_top_k = default_top_k
        self.suggestion_limit = suggestion_limit
        self.metrics = metrics or get_metrics_collector()

    @classmethod
    def from_config(
        cls,
        source: ChunkSource,
        encoder: VectorEncoder,
        config: SearchConfig,
        metrics: Optional[MetricsCollector] = None,
    ) -> "SearchManager":
        return cls(
            source,
            encoder,
            index=SimilarityIndex(
                threshold=config.qa_similarity_threshold,
                top_k=config.qa_default_top_k,
                strict_dimensions=config.qa_strict_dimensions,
            ),
            ranker=HybridRanker(keyword_weight=config.qa_keyword_weight),
            default_top_k=config.qa_default_top_k,
            suggestion_limit=config.qa_suggestion_limit,
            metrics=metrics,
        )

    def _resolve_top_k(self, top_k: Optional[int]) -> int:
        top_k = self.default_top_k if top_k is None else top_k
        if top_k < 0:
            raise ValueError(f"top_k must not be negative, got {top_k}")
        return top_k

    def _check_query(self, query: str) -> None:
        if not self.encoder.is_initialized:
            raise NotInitializedError("Encoder not initialized. Please initialize before searching.")
        if not query or not query.strip():
            raise EmptyInputError("Search query is empty")

    async def _score(self, query: str, chunks: Sequence[Chunk]) -> List[float]:
        """Score chunks document by document with matching query vectors."""
        positions: Dict[int, List[int]] = {}
        for i, chunk in enumerate(chunks):
            positions.setdefault(chunk.document_id, []).append(i)

        scores = [0.0] * len(chunks)
        query_vectors: Dict[str, np.ndarray] = {}
        for document_id, idxs in positions.items():
            vocabulary = await self.source.get_vocabulary(document_id)
            if vocabulary is None:
                logger.warning("No vocabulary stored for document", document_id=document_id)
                vocabulary = EMPTY_VOCABULARY

            query_vector = query_vectors.get(vocabulary.version)
            if query_vector is None:
                query_vector = self.encoder.encode(query, vocabulary)
                query_vectors[vocabulary.version] = query_vector

            group_scores = self.index.score(query_vector, [chunks[i].embedding for i in idxs])
            for i, score in zip(idxs, group_scores):
                scores[i] = score
        return scores

    async def _build_results(
        self,
        chunks: Sequence[Chunk],
        ranked: Sequence[Tuple[int, float]],
    ) -> List[SearchResult]:
        documents: Dict[int, Optional[DocumentRecord]] = {}
        results = []
        for rank, (position, similarity) in enumerate(ranked, start=1):
            chunk = chunks[position]
            if chunk.document_id not in documents:
                documents[chunk.document_id] = await self.source.get_document(chunk.document_id)
            document = documents[chunk.document_id]

            result = SearchResult(chunk=chunk, similarity=similarity, rank=rank)
            if document is not None:
                result.document_name = document.filename
                result.upload_date = document.upload_date
            results.append(result)
        return results

    async def _vector_search(
        self,
        query: str,
        document_id: Optional[int],
        top_k: int,
    ) -> SearchResponse:
        self._check_query(query)

        try:
            chunks = await self.source.get_chunks(document_id)
        except Exception as e:
            logger.error("Failed to load chunks", document_id=document_id, error=str(e))
            raise

        if not chunks:
            return SearchResponse(query=query, total_searched=0)

        scores = await self._score(query, chunks)
        ranked = self.index.rank(scores, top_k=top_k)
        results = await self._build_results(chunks, ranked)
        return SearchResponse(query=query, results=results, total_searched=len(chunks))

    async def search(
        self,
        query: str,
        document_id: Optional[int] = None,
        top_k: Optional[int] = None,
    ) -> SearchResponse:
        """Vector search within one document, or the whole corpus when ``None``.

        Raises
        - ``NotInitializedError`` if the encoder is not initialized
        - ``EmptyInputError`` for a blank query
        - ``ValueError`` for a negative ``top_k``
        """
        top_k = self._resolve_top_k(top_k)
        start_time = time.time()

        response = await self._vector_search(query, document_id, top_k)

        duration = time.time() - start_time
        self.metrics.record_search("vector", duration)
        log_performance(
            "search",
            duration * 1000,
            query_type="vector",
            document_id=document_id,
            searched=response.total_searched,
            results=len(response.results),
        )
        return response

    async def hybrid_search(
        self,
        query: str,
        document_id: Optional[int] = None,
        top_k: Optional[int] = None,
    ) -> SearchResponse:
        """Vector search for ``2 * top_k`` candidates, re-ranked with keywords."""
        top_k = self._resolve_top_k(top_k)
        start_time = time.time()

        vector_response = await self._vector_search(query, document_id, top_k * 2)
        results = self.ranker.rerank(query, vector_response.results, top_k)

        duration = time.time() - start_time
        self.metrics.record_search("hybrid", duration)
        log_performance(
            "search",
            duration * 1000,
            query_type="hybrid",
            document_id=document_id,
            searched=vector_response.total_searched,
            results=len(results),
        )
        return SearchResponse(
            query=query,
            results=results,
            total_searched=vector_response.total_searched,
            search_type="hybrid",
        )

    async def suggest(
        self,
        document_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Suggestion]:
        """Candidate query phrases from one document or the whole corpus."""
        limit = self.suggestion_limit if limit is None else limit
        chunks = await self.source.get_chunks(document_id)
        return self.suggester.extract(chunks, limit)
