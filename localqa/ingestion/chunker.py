"""Word-window chunking with overlap."""

from typing import Iterator, List, Tuple

import structlog

from ..errors import EmptyInputError
from ..models import Chunk, ChunkingStats

logger = structlog.get_logger("localqa.ingestion.chunker")


class Chunker:
    """Splits text into ordered, overlapping windows of whitespace-split words.

    Consecutive windows start ``max(max_chunk_size - overlap, 1)`` words apart,
    so chunking terminates for any ``overlap >= 0``, including overlaps at or
    above the window size.
    """

    def __init__(self, max_chunk_size: int = 500, overlap: int = 50, min_text_length: int = 10):
        if max_chunk_size < 1:
            raise ValueError("max_chunk_size must be at least 1")
        if overlap < 0:
            raise ValueError("overlap must not be negative")
        self.max_chunk_size = max_chunk_size
        self.overlap = overlap
        self.min_text_length = min_text_length

    @property
    def step(self) -> int:
        return max(self.max_chunk_size - self.overlap, 1)

    def windows(self, n_tokens: int) -> Iterator[Tuple[int, int]]:
        """Yield ``(start, end)`` token spans covering ``range(n_tokens)``."""
        start = 0
        while start < n_tokens:
            end = min(start + self.max_chunk_size, n_tokens)
            yield start, end
            if end >= n_tokens:
                break
            start += self.step

    def chunk(self, text: str, document_id: int) -> List[Chunk]:
        """Split ``text`` into chunks numbered from 0.

        Raises
        - ``EmptyInputError`` if the text is shorter than ``min_text_length``
          or yields no chunks
        """
        if not text or len(text.strip()) < self.min_text_length:
            raise EmptyInputError("Document appears to be empty or contains no readable text")

        words = text.split()
        chunks: List[Chunk] = []
        for start, end in self.windows(len(words)):
            window = words[start:end]
            chunk_text = " ".join(window).strip()
            if chunk_text:
                chunks.append(Chunk(
                    document_id=document_id,
                    chunk_index=len(chunks),
                    text=chunk_text,
                    token_count=len(window),
                ))

        if not chunks:
            raise EmptyInputError("No valid text chunks could be created from the document")

        logger.debug(
            "Text chunked",
            document_id=document_id,
            words=len(words),
            chunks=len(chunks),
        )
        return chunks

    def chunk_text(self, text: str, document_id: int) -> Tuple[List[Chunk], ChunkingStats]:
        """Chunk ``text`` and summarize the split."""
        chunks = self.chunk(text, document_id)
        stats = ChunkingStats(
            total_words=len(text.split()),
            total_chunks=len(chunks),
            avg_chunk_size=sum(c.token_count for c in chunks) / len(chunks),
        )
        return chunks, stats
