"""Text extraction interface.

Anything matching ``TextExtractor`` can be plugged into the ingestion
pipeline. ``PlainTextExtractor`` reads text files, ``PdfTextExtractor`` reads
the text layer of PDFs, and ``FileTextExtractor`` picks one by file suffix.
"""

import io
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

import structlog
from pypdf import PdfReader

logger = structlog.get_logger("localqa.ingestion.extractor")

PathLike = Union[str, Path]


class TextExtractor(Protocol):
    def __call__(self, source: PathLike) -> str: ...


class PlainTextExtractor:
    """Reads a text file as UTF-8, dropping undecodable bytes."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def __call__(self, source: PathLike) -> str:
        with io.open(source, "r", encoding=self.encoding, errors="ignore") as f:
            return f.read().strip()


class PdfTextExtractor:
    """Concatenates the text of every PDF page, pages separated by blank lines.

    Scanned pages without a text layer contribute nothing; a page whose text
    cannot be decoded is skipped with a warning. Unreadable files raise.
    """

    def __call__(self, source: PathLike) -> str:
        reader = PdfReader(str(source))
        parts = []
        for number, page in enumerate(reader.pages, start=1):
            try:
                text = page.extract_text() or ""
            except Exception as e:
                logger.warning("Page text extraction failed", source=str(source), page=number, error=str(e))
                continue
            if text.strip():
                parts.append(text.strip())

        logger.debug("PDF text extracted", source=str(source), pages=len(reader.pages), text_pages=len(parts))
        return "\n\n".join(parts)


class FileTextExtractor:
    """Dispatches on file suffix; unknown suffixes are read as plain text."""

    def __init__(self, extractors: Optional[Dict[str, TextExtractor]] = None, default: Optional[TextExtractor] = None):
        self.extractors = extractors or {".pdf": PdfTextExtractor()}
        self.default = default or PlainTextExtractor()

    def __call__(self, source: PathLike) -> str:
        extractor = self.extractors.get(Path(source).suffix.lower(), self.default)
        return extractor(source)
