"""In-memory chunk store with pickle snapshots.

Documents, chunks, and vocabulary snapshots are kept in dictionaries keyed by
auto-incremented ids. ``save``/``load`` write the whole store to a single file
so the CLI can keep a corpus between runs.
"""

import pickle
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

import numpy as np
import structlog

from ..common.config import VECTOR_DIMENSION
from ..common.metrics import MetricsCollector, get_metrics_collector
from ..embedding.vocabulary import VocabularyModel
from ..models import Chunk, DocumentRecord
from .base import (
    ChunkStore,
    StoreNotFoundError,
    StoreSnapshotError,
    StoreValidationError,
)

logger = structlog.get_logger("localqa.store.memory")

SNAPSHOT_FORMAT = 1
UPDATABLE_FIELDS = {"filename", "file_size", "total_chunks"}


def _copy_chunk(chunk: Chunk) -> Chunk:
    embedding = None if chunk.embedding is None else chunk.embedding.copy()
    return replace(chunk, embedding=embedding)


class InMemoryChunkStore(ChunkStore):
    """Chunk store held in process memory."""

    def __init__(
        self,
        vector_dimension: Optional[int] = VECTOR_DIMENSION,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Create an empty store.

        Parameters
        - vector_dimension: Required embedding length; ``None`` disables the check
        """
        self.vector_dimension = vector_dimension
        self.metrics = metrics or get_metrics_collector()
        self._documents: Dict[int, DocumentRecord] = {}
        self._chunks: Dict[int, Chunk] = {}
        self._vocabularies: Dict[int, VocabularyModel] = {}
        self._next_document_id = 1
        self._next_chunk_id = 1

    # Documents

    async def create_document(self, filename: str, file_size: int = 0) -> int:
        document_id = self._next_document_id
        self._next_document_id += 1
        self._documents[document_id] = DocumentRecord(
            id=document_id,
            filename=filename,
            upload_date=datetime.now(),
            file_size=file_size,
        )
        self.metrics.record_store_operation("create_document")
        logger.debug("Document created", document_id=document_id, filename=filename)
        return document_id

    async def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        document = self._documents.get(document_id)
        return replace(document) if document else None

    async def list_documents(self) -> List[DocumentRecord]:
        documents = sorted(
            self._documents.values(),
            key=lambda d: (d.upload_date, d.id),
            reverse=True,
        )
        return [replace(d) for d in documents]

    async def update_document(self, document_id: int, **updates: Any) -> None:
        document = self._documents.get(document_id)
        if document is None:
            raise StoreNotFoundError(f"Document {document_id} not found")

        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise StoreValidationError(f"Cannot update fields: {sorted(unknown)}")

        self._documents[document_id] = replace(document, **updates)
        self.metrics.record_store_operation("update_document")

    async def delete_document(self, document_id: int) -> bool:
        if document_id not in self._documents:
            return False

        chunk_ids = [cid for cid, c in self._chunks.items() if c.document_id == document_id]
        for cid in chunk_ids:
            del self._chunks[cid]
        self._vocabularies.pop(document_id, None)
        del self._documents[document_id]

        self.metrics.record_store_operation("delete_document")
        logger.info("Document deleted", document_id=document_id, chunks=len(chunk_ids))
        return True

    # Chunks

    def _existing_keys(self) -> Set[Tuple[int, int]]:
        return {(c.document_id, c.chunk_index) for c in self._chunks.values()}

    def _validate(self, chunk: Chunk, seen: Set[Tuple[int, int]]) -> None:
        if chunk.document_id not in self._documents:
            raise StoreNotFoundError(f"Document {chunk.document_id} not found")
        if not chunk.text:
            raise StoreValidationError("Chunk text must not be empty")
        key = (chunk.document_id, chunk.chunk_index)
        if key in seen:
            raise StoreValidationError(
                f"Chunk {chunk.chunk_index} of document {chunk.document_id} already stored"
            )
        if (
            chunk.embedding is not None
            and self.vector_dimension is not None
            and len(chunk.embedding) != self.vector_dimension
        ):
            raise StoreValidationError(
                f"Embedding has dimension {len(chunk.embedding)}, expected {self.vector_dimension}"
            )
        seen.add(key)

    def _insert(self, chunk: Chunk) -> int:
        chunk_id = self._next_chunk_id
        self._next_chunk_id += 1
        stored = _copy_chunk(chunk)
        if stored.embedding is not None:
            stored.embedding = np.asarray(stored.embedding, dtype=np.float32)
        stored.id = chunk_id
        self._chunks[chunk_id] = stored
        return chunk_id

    async def put_chunk(self, chunk: Chunk) -> int:
        self._validate(chunk, self._existing_keys())
        chunk_id = self._insert(chunk)
        self.metrics.record_store_operation("put_chunk")
        return chunk_id

    async def put_chunks(self, chunks: Sequence[Chunk]) -> List[int]:
        seen = self._existing_keys()
        for chunk in chunks:
            self._validate(chunk, seen)

        ids = [self._insert(chunk) for chunk in chunks]
        self.metrics.record_store_operation("put_chunks")
        logger.debug("Chunks stored", count=len(ids))
        return ids

    async def get_document_chunks(self, document_id: int) -> List[Chunk]:
        chunks = [c for c in self._chunks.values() if c.document_id == document_id]
        chunks.sort(key=lambda c: c.chunk_index)
        return [_copy_chunk(c) for c in chunks]

    async def get_all_chunks(self) -> List[Chunk]:
        return [_copy_chunk(c) for c in self._chunks.values()]

    # Vocabularies

    async def put_vocabulary(self, document_id: int, model: VocabularyModel) -> None:
        if document_id not in self._documents:
            raise StoreNotFoundError(f"Document {document_id} not found")
        self._vocabularies[document_id] = model
        self.metrics.record_store_operation("put_vocabulary")

    async def get_vocabulary(self, document_id: int) -> Optional[VocabularyModel]:
        return self._vocabularies.get(document_id)

    # Maintenance

    async def get_stats(self) -> Dict[str, int]:
        return {"documents": len(self._documents), "chunks": len(self._chunks)}

    async def clear(self) -> None:
        self._documents.clear()
        self._chunks.clear()
        self._vocabularies.clear()
        self.metrics.record_store_operation("clear")
        logger.info("Store cleared")

    # Snapshots

    def to_bytes(self) -> bytes:
        payload = {
            "format": SNAPSHOT_FORMAT,
            "vector_dimension": self.vector_dimension,
            "documents": self._documents,
            "chunks": self._chunks,
            "vocabularies": self._vocabularies,
            "next_document_id": self._next_document_id,
            "next_chunk_id": self._next_chunk_id,
        }
        return pickle.dumps(payload, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def from_bytes(cls, data: bytes, metrics: Optional[MetricsCollector] = None) -> "InMemoryChunkStore":
        try:
            payload = pickle.loads(data)
        except Exception as e:
            raise StoreSnapshotError(f"Unreadable snapshot: {e}")

        if not isinstance(payload, dict) or payload.get("format") != SNAPSHOT_FORMAT:
            raise StoreSnapshotError("Unsupported snapshot format")

        store = cls(vector_dimension=payload.get("vector_dimension"), metrics=metrics)
        store._documents = payload.get("documents", {})
        store._chunks = payload.get("chunks", {})
        store._vocabularies = payload.get("vocabularies", {})
        store._next_document_id = payload.get("next_document_id", len(store._documents) + 1)
        store._next_chunk_id = payload.get("next_chunk_id", len(store._chunks) + 1)
        return store

    def save(self, path: str) -> str:
        """Write the store to ``path`` and return the path written."""
        out_path = Path(path)
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
            with open(out_path, "wb") as f:
                f.write(self.to_bytes())
        except OSError as e:
            logger.error("Failed to save snapshot", path=str(out_path), error=str(e))
            raise StoreSnapshotError(f"Failed to save snapshot: {e}")

        logger.info("Snapshot saved", path=str(out_path), documents=len(self._documents))
        return str(out_path)

    @classmethod
    def load(cls, path: str, metrics: Optional[MetricsCollector] = None) -> "InMemoryChunkStore":
        """Read a store previously written with ``save``."""
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            logger.error("Failed to load snapshot", path=path, error=str(e))
            raise StoreSnapshotError(f"Failed to load snapshot: {e}")
        return cls.from_bytes(data, metrics=metrics)
