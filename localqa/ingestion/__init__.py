"""Document ingestion.

The modules in this package turn raw documents into stored, encoded chunks.

Highlights
- ``chunker``: overlapping word windows
- ``extractor``: pluggable text extraction
- ``pipeline``: ordered chunk → vocabulary → encode → store workflow
"""

from .chunker import Chunker
from .extractor import FileTextExtractor, PdfTextExtractor, PlainTextExtractor, TextExtractor
from .pipeline import DocumentIngestor, IngestionResult

__all__ = [
    "Chunker",
    "FileTextExtractor",
    "PdfTextExtractor",
    "PlainTextExtractor",
    "TextExtractor",
    "DocumentIngestor",
    "IngestionResult",
]
