"""Query suggestions lifted from stored chunk text.

Best effort: the first couple of short sentences of each chunk are offered as
example queries.
"""

import re
from typing import List, Sequence

from ..models import Chunk, Suggestion

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")

MIN_SENTENCE_LENGTH = 10
SENTENCES_PER_CHUNK = 2
MIN_WORDS = 3
MAX_WORDS = 8
MAX_SUGGESTION_CHARS = 60


class SuggestionExtractor:
    """Collects short sentence-like phrases as candidate queries."""

    def __init__(self, sentences_per_chunk: int = SENTENCES_PER_CHUNK):
        self.sentences_per_chunk = sentences_per_chunk

    def extract(self, chunks: Sequence[Chunk], limit: int = 5) -> List[Suggestion]:
        """Return up to ``limit`` distinct phrases in first-seen order.

        Per chunk, sentences longer than ``MIN_SENTENCE_LENGTH`` characters are
        considered, first two only; those with 3 to 8 words become candidates.
        Duplicates are detected case-insensitively.
        """
        suggestions: List[Suggestion] = []
        if limit <= 0:
            return suggestions
        seen = set()

        for chunk in chunks:
            sentences = [
                s for s in SENTENCE_SPLIT_RE.split(chunk.text)
                if len(s.strip()) > MIN_SENTENCE_LENGTH
            ]
            for sentence in sentences[:self.sentences_per_chunk]:
                words = sentence.split()
                if not MIN_WORDS <= len(words) <= MAX_WORDS:
                    continue
                phrase = " ".join(words)[:MAX_SUGGESTION_CHARS]
                key = phrase.lower()
                if key in seen:
                    continue
                seen.add(key)
                suggestions.append(Suggestion(text=phrase, document_id=chunk.document_id))
                if len(suggestions) >= limit:
                    return suggestions

        return suggestions
