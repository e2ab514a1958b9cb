"""Data model shared by ingestion, storage, and search.

Vectors are ``numpy`` float32 arrays; everything else is a plain dataclass so
records can be pickled into snapshots and turned into dictionaries for output.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import numpy as np


@dataclass
class Chunk:
    """A contiguous window of a document's words, the unit of retrieval.

    ``embedding`` stays ``None`` until the encoder fills it during ingestion;
    ``id`` is assigned by the store.
    """
    document_id: int
    chunk_index: int
    text: str
    token_count: int
    embedding: Optional[np.ndarray] = None
    id: Optional[int] = None

    def to_dict(self, include_embedding: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "document_id": self.document_id,
            "chunk_index": self.chunk_index,
            "text": self.text,
            "token_count": self.token_count,
        }
        if include_embedding:
            data["embedding"] = None if self.embedding is None else self.embedding.tolist()
        return data


@dataclass
class DocumentRecord:
    """Metadata kept for an ingested document."""
    id: int
    filename: str
    upload_date: datetime
    file_size: int = 0
    total_chunks: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "upload_date": self.upload_date.isoformat(),
            "file_size": self.file_size,
            "total_chunks": self.total_chunks,
        }


@dataclass
class SearchResult:
    """A ranked chunk returned by vector or hybrid search."""
    chunk: Chunk
    similarity: float
    rank: int
    keyword_score: Optional[float] = None
    combined_score: Optional[float] = None
    document_name: str = "Unknown Document"
    upload_date: Optional[datetime] = None

    @property
    def document_id(self) -> int:
        return self.chunk.document_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "document_id": self.chunk.document_id,
            "document_name": self.document_name,
            "chunk_index": self.chunk.chunk_index,
            "similarity": self.similarity,
            "keyword_score": self.keyword_score,
            "combined_score": self.combined_score,
            "text": self.chunk.text,
        }


@dataclass
class SearchResponse:
    """Results of one search call plus how many chunks were considered."""
    query: str
    results: List[SearchResult] = field(default_factory=list)
    total_searched: int = 0
    search_type: str = "vector"

    @property
    def has_results(self) -> bool:
        return len(self.results) > 0


@dataclass
class Suggestion:
    """A candidate query phrase lifted from stored chunk text."""
    text: str
    document_id: int


@dataclass
class ChunkingStats:
    """Summary of how a document was split."""
    total_words: int
    total_chunks: int
    avg_chunk_size: float
