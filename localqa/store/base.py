"""Chunk store interface.

Defines the contract the rest of the package depends on, independent of the
backing implementation. Search only needs the read side (``ChunkSource``);
ingestion writes through ``ChunkStore``.

All methods are asynchronous so a store backed by a database or a remote
service can be dropped in without changing callers.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..embedding.vocabulary import VocabularyModel
from ..models import Chunk, DocumentRecord


class ChunkSource(ABC):
    """Read-only access to stored chunks, their vectors, and vocabularies."""

    @abstractmethod
    async def get_document(self, document_id: int) -> Optional[DocumentRecord]:
        """Get document metadata, or ``None`` if unknown."""
        pass

    @abstractmethod
    async def get_document_chunks(self, document_id: int) -> List[Chunk]:
        """Get one document's chunks ordered by ``chunk_index``."""
        pass

    @abstractmethod
    async def get_all_chunks(self) -> List[Chunk]:
        """Get every stored chunk, grouped by document in insertion order."""
        pass

    @abstractmethod
    async def get_vocabulary(self, document_id: int) -> Optional[VocabularyModel]:
        """Get the vocabulary snapshot a document's vectors were built with."""
        pass

    async def get_chunks(self, document_id: Optional[int] = None) -> List[Chunk]:
        """Get the chunks of one document, or of the whole corpus when ``None``."""
        if document_id is None:
            return await self.get_all_chunks()
        return await self.get_document_chunks(document_id)


class ChunkStore(ChunkSource):
    """Read/write chunk store.

    Implementations should keep ``chunk_index`` ordering per document and
    return stored embeddings unchanged.
    """

    @abstractmethod
    async def create_document(self, filename: str, file_size: int = 0) -> int:
        """Create a document record and return its id."""
        pass

    @abstractmethod
    async def list_documents(self) -> List[DocumentRecord]:
        """List documents, most recently uploaded first."""
        pass

    @abstractmethod
    async def update_document(self, document_id: int, **updates: Any) -> None:
        """Update document metadata fields.

        Raises ``StoreNotFoundError`` for an unknown document.
        """
        pass

    @abstractmethod
    async def delete_document(self, document_id: int) -> bool:
        """Delete a document with its chunks and vocabulary.

        Returns ``True`` if a document was deleted, else ``False``.
        """
        pass

    @abstractmethod
    async def put_chunk(self, chunk: Chunk) -> int:
        """Store one chunk and return its id."""
        pass

    @abstractmethod
    async def put_chunks(self, chunks: Sequence[Chunk]) -> List[int]:
        """Store a batch of chunks; either all are stored or none are."""
        pass

    @abstractmethod
    async def put_vocabulary(self, document_id: int, model: VocabularyModel) -> None:
        """Attach the vocabulary snapshot used to encode a document."""
        pass

    @abstractmethod
    async def get_stats(self) -> Dict[str, int]:
        """Get ``documents`` and ``chunks`` counts."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove all documents, chunks, and vocabularies."""
        pass


class StoreError(Exception):
    """Base exception for chunk store operations."""
    pass


class StoreNotFoundError(StoreError):
    """Referenced document does not exist."""
    pass


class StoreValidationError(StoreError):
    """Write rejected because the record is malformed."""
    pass


class StoreSnapshotError(StoreError):
    """Snapshot could not be written or read."""
    pass
