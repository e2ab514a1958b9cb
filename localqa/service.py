"""Application service tying ingestion, storage, and search together.

``DocumentQAService`` is the entry point applications (and the CLI) use. It
builds every component from typed configuration, initializes the encoder on
first ingestion, and offers the maintenance operations around the corpus.
"""

from typing import Any, Dict, List, Optional

import structlog

from .common.config import IngestionConfig, SearchConfig
from .common.metrics import MetricsCollector, get_metrics_collector
from .embedding.encoder import ProgressCallback, VectorEncoder
from .ingestion.chunker import Chunker
from .ingestion.extractor import PathLike, TextExtractor
from .ingestion.pipeline import DocumentIngestor, IngestionResult
from .models import SearchResponse, Suggestion
from .search.search_manager import SearchManager
from .store.base import ChunkStore
from .store.memory import InMemoryChunkStore

logger = structlog.get_logger("localqa.service")


class DocumentQAService:
    """Local document question-answering over a chunk store.

    Parameters
    - store: Chunk store; defaults to an empty ``InMemoryChunkStore``
    - ingestion_config: Chunking and encoding settings
    - search_config: Thresholds, result sizes, and ranking weights
    - extractor: Text extractor for ``ingest_file``
    """

    def __init__(
        self,
        store: Optional[ChunkStore] = None,
        ingestion_config: Optional[IngestionConfig] = None,
        search_config: Optional[SearchConfig] = None,
        extractor: Optional[TextExtractor] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.ingestion_config = ingestion_config or IngestionConfig()
        self.search_config = search_config or SearchConfig()
        self.metrics = metrics or get_metrics_collector()

        cfg = self.ingestion_config
        self.store = store or InMemoryChunkStore(
            vector_dimension=cfg.qa_vector_dimension,
            metrics=self.metrics,
        )
        self.encoder = VectorEncoder(
            dimension=cfg.qa_vector_dimension,
            hash_count=cfg.qa_hash_count,
            max_terms=cfg.qa_max_terms,
            min_term_length=cfg.qa_min_term_length,
            max_term_length=cfg.qa_max_term_length,
            yield_interval=cfg.qa_batch_yield_interval,
            metrics=self.metrics,
        )
        self.ingestor = DocumentIngestor(
            self.store,
            self.encoder,
            chunker=Chunker(
                max_chunk_size=cfg.qa_chunk_size,
                overlap=cfg.qa_chunk_overlap,
                min_text_length=cfg.qa_min_text_length,
            ),
            extractor=extractor,
            metrics=self.metrics,
        )
        self.search_manager = SearchManager.from_config(
            self.store,
            self.encoder,
            self.search_config,
            metrics=self.metrics,
        )

    @property
    def is_initialized(self) -> bool:
        return self.encoder.is_initialized

    async def initialize(self, progress_callback: Optional[ProgressCallback] = None) -> bool:
        """Initialize the encoder; safe to call repeatedly."""
        return await self.encoder.initialize(progress_callback)

    # Ingestion

    async def ingest_file(
        self,
        source: PathLike,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestionResult:
        """Ingest a file as a new document, initializing the encoder if needed."""
        await self.initialize()
        return await self.ingestor.ingest_file(source, progress_callback)

    async def ingest_text(
        self,
        filename: str,
        text: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestionResult:
        """Ingest raw text as a new document named ``filename``."""
        await self.initialize()
        return await self.ingestor.ingest_new_document(
            filename,
            text,
            file_size=len(text.encode("utf-8")),
            progress_callback=progress_callback,
        )

    # Search

    async def search(
        self,
        query: str,
        document_id: Optional[int] = None,
        top_k: Optional[int] = None,
    ) -> SearchResponse:
        return await self.search_manager.search(query, document_id, top_k)

    async def hybrid_search(
        self,
        query: str,
        document_id: Optional[int] = None,
        top_k: Optional[int] = None,
    ) -> SearchResponse:
        return await self.search_manager.hybrid_search(query, document_id, top_k)

    async def suggest(
        self,
        document_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Suggestion]:
        return await self.search_manager.suggest(document_id, limit)

    # Maintenance

    async def delete_document(self, document_id: int) -> bool:
        return await self.store.delete_document(document_id)

    async def get_database_info(self) -> Dict[str, Any]:
        """Store counts plus a summary of every document."""
        stats = await self.store.get_stats()
        documents = await self.store.list_documents()
        return {
            "stats": stats,
            "documents": [d.to_dict() for d in documents],
        }

    async def export_document_data(self, document_id: int) -> Optional[Dict[str, Any]]:
        """Document metadata and chunk texts, or ``None`` for an unknown id."""
        document = await self.store.get_document(document_id)
        if document is None:
            return None

        chunks = await self.store.get_document_chunks(document_id)
        return {
            "document": document.to_dict(),
            "chunks": [
                {
                    "index": c.chunk_index,
                    "text": c.text,
                    "token_count": c.token_count,
                }
                for c in chunks
            ],
        }

    async def clear_all_data(self) -> None:
        await self.store.clear()
        logger.info("All data cleared")
