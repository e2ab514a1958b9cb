"""Document ingestion pipeline.

Coordinates the steps that turn a document into searchable chunks:

1. Extract raw text (file sources only)
2. Chunk the text
3. Build the vocabulary snapshot over the whole batch
4. Encode every chunk against that snapshot
5. Store chunks with their vectors, then the snapshot

Execution model
- Steps run strictly in order; encoding never starts before the vocabulary
  is complete
- Nothing is written to the store until every chunk has a vector, so a failed
  run leaves no partial chunk set behind
- Progress is reported through an optional ``(percent, message)`` callback
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import structlog

from ..common.metrics import MetricsCollector, get_metrics_collector
from ..embedding.encoder import ProgressCallback, VectorEncoder
from ..embedding.vocabulary import VocabularyModel, build_vocabulary
from ..models import Chunk, ChunkingStats
from ..store.base import ChunkStore
from .chunker import Chunker
from .extractor import FileTextExtractor, PathLike, TextExtractor

logger = structlog.get_logger("localqa.ingestion.pipeline")


def _noop_progress(percent: float, message: str) -> None:
    pass


@dataclass
class IngestionResult:
    """Outcome of a successful ingestion run."""
    document_id: int
    chunks: List[Chunk]
    vocabulary: VocabularyModel
    stats: ChunkingStats


class DocumentIngestor:
    """Runs documents through chunking, vocabulary building, encoding, and storage."""

    def __init__(
        self,
        store: ChunkStore,
        encoder: VectorEncoder,
        chunker: Optional[Chunker] = None,
        extractor: Optional[TextExtractor] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.store = store
        self.encoder = encoder
        self.chunker = chunker or Chunker()
        self.extractor = extractor or FileTextExtractor()
        self.metrics = metrics or get_metrics_collector()

    async def ingest_text(
        self,
        document_id: int,
        text: str,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestionResult:
        """Ingest raw text for an existing document record.

        Raises
        - ``EmptyInputError`` when the text yields no chunks
        - ``NotInitializedError`` when the encoder has not been initialized
        - ``StoreError`` subclasses from the store, unchanged
        """
        report = progress_callback or _noop_progress
        log = logger.bind(document_id=document_id)

        try:
            report(55, "Creating text chunks...")
            chunks, stats = self.chunker.chunk_text(text, document_id)
            report(60, f"Created {len(chunks)} text chunks")

            vocabulary = build_vocabulary(
                chunks,
                max_terms=self.encoder.max_terms,
                min_length=self.encoder.min_term_length,
                max_length=self.encoder.max_term_length,
            )

            vectors = await self.encoder.encode_batch(
                chunks,
                vocabulary,
                progress_callback=report,
                progress_range=(60.0, 90.0),
            )

            report(92, "Saving to database...")
            for chunk, vector in zip(chunks, vectors):
                chunk.embedding = vector

            ids = await self.store.put_chunks(chunks)
            for chunk, chunk_id in zip(chunks, ids):
                chunk.id = chunk_id
            await self.store.put_vocabulary(document_id, vocabulary)

            report(98, "Finalizing...")
            await self.store.update_document(document_id, total_chunks=len(chunks))

        except Exception as e:
            self.metrics.record_ingestion("failed")
            log.error("Document ingestion failed", error=str(e))
            raise

        report(100, "Processing complete!")
        self.metrics.record_ingestion("success", len(chunks))
        log.info(
            "Document ingested",
            chunks=stats.total_chunks,
            words=stats.total_words,
            vocabulary_terms=len(vocabulary),
        )
        return IngestionResult(
            document_id=document_id,
            chunks=chunks,
            vocabulary=vocabulary,
            stats=stats,
        )

    async def ingest_file(
        self,
        source: PathLike,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestionResult:
        """Extract text from a file, create its document record, and ingest it."""
        report = progress_callback or _noop_progress
        path = Path(source)

        report(5, "Starting document processing...")
        try:
            text = self.extractor(path)
            file_size = path.stat().st_size
        except Exception as e:
            self.metrics.record_ingestion("failed")
            logger.error("Text extraction failed", source=str(path), error=str(e))
            raise
        report(50, f"Extracted text from {path.name}")

        return await self.ingest_new_document(path.name, text, file_size, progress_callback)

    async def ingest_new_document(
        self,
        filename: str,
        text: str,
        file_size: int = 0,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestionResult:
        """Create a document record for ``text`` and ingest it.

        The document record is removed again if ingestion fails.
        """
        document_id = await self.store.create_document(filename, file_size=file_size)
        try:
            return await self.ingest_text(document_id, text, progress_callback)
        except Exception:
            await self.store.delete_document(document_id)
            raise
