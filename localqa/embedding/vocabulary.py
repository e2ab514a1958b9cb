"""Per-batch term statistics used to weight encoded terms.

A ``VocabularyModel`` is built once over every chunk of an ingestion batch and
is read-only afterwards. Document frequency counts chunks containing a term,
not occurrences, and IDF uses additive smoothing::

    idf(term) = ln(N / (df(term) + 1)) + 1

Terms the snapshot has never seen (typically out-of-corpus query terms) get an
IDF of 1. Building a new model after more chunks arrive changes every weight,
so vectors encoded against different snapshots are not comparable.
"""

import hashlib
import json
import math
import re
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, List, Mapping, Sequence, Union

import structlog

from ..common.metrics import measure_time
from ..errors import EmptyInputError
from ..models import Chunk

logger = structlog.get_logger("localqa.embedding.vocabulary")

NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")

MIN_TERM_LENGTH = 3
MAX_TERM_LENGTH = 19
MAX_TERMS = 100
DEFAULT_IDF = 1.0


def tokenize(
    text: str,
    max_terms: int = MAX_TERMS,
    min_length: int = MIN_TERM_LENGTH,
    max_length: int = MAX_TERM_LENGTH,
) -> List[str]:
    """Split text into weighting terms.

    Lowercases, turns anything that is not ``[a-z0-9]`` or whitespace into
    whitespace, keeps tokens whose length is within ``[min_length, max_length]``
    and returns at most the first ``max_terms`` of them.
    """
    cleaned = NON_ALNUM_RE.sub(" ", text.lower())
    terms: List[str] = []
    for token in cleaned.split():
        if min_length <= len(token) <= max_length:
            terms.append(token)
            if len(terms) >= max_terms:
                break
    return terms


@dataclass(frozen=True)
class VocabularyModel:
    """Immutable term statistics for one batch of chunks."""
    num_chunks: int
    document_frequency: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    idf: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    version: str = ""

    def idf_for(self, term: str) -> float:
        return self.idf.get(term, DEFAULT_IDF)

    def __len__(self) -> int:
        return len(self.idf)

    def __contains__(self, term: object) -> bool:
        return term in self.idf

    def __getstate__(self):
        # mappingproxy cannot be pickled; snapshots store plain dicts
        return {
            "num_chunks": self.num_chunks,
            "document_frequency": dict(self.document_frequency),
            "idf": dict(self.idf),
            "version": self.version,
        }

    def __setstate__(self, state):
        object.__setattr__(self, "num_chunks", state["num_chunks"])
        object.__setattr__(self, "document_frequency", MappingProxyType(dict(state["document_frequency"])))
        object.__setattr__(self, "idf", MappingProxyType(dict(state["idf"])))
        object.__setattr__(self, "version", state["version"])


EMPTY_VOCABULARY = VocabularyModel(num_chunks=0, version="empty")


def _fingerprint(num_chunks: int, document_frequency: Mapping[str, int]) -> str:
    payload = json.dumps({"n": num_chunks, "df": document_frequency}, sort_keys=True)
    return hashlib.md5(payload.encode()).hexdigest()


@measure_time("build_vocabulary")
def build_vocabulary(
    chunks: Sequence[Union[Chunk, str]],
    max_terms: int = MAX_TERMS,
    min_length: int = MIN_TERM_LENGTH,
    max_length: int = MAX_TERM_LENGTH,
) -> VocabularyModel:
    """Build the vocabulary snapshot for a complete batch of chunks.

    Parameters
    - chunks: Every chunk of the batch, as ``Chunk`` objects or raw strings
    - max_terms: Per-chunk cap on the number of terms considered

    Returns
    - A ``VocabularyModel`` whose ``version`` fingerprints its contents

    Raises
    - ``EmptyInputError`` when the batch is empty
    """
    if not chunks:
        raise EmptyInputError("Cannot build a vocabulary from an empty batch of chunks")

    texts: Iterable[str] = (c.text if isinstance(c, Chunk) else c for c in chunks)

    df: Counter = Counter()
    for text in texts:
        df.update(set(tokenize(text, max_terms, min_length, max_length)))

    n = len(chunks)
    idf = {term: math.log(n / (count + 1)) + 1 for term, count in df.items()}
    document_frequency = dict(df)

    model = VocabularyModel(
        num_chunks=n,
        document_frequency=MappingProxyType(document_frequency),
        idf=MappingProxyType(idf),
        version=_fingerprint(n, document_frequency),
    )

    logger.info(
        "Vocabulary built",
        num_chunks=n,
        num_terms=len(idf),
        version=model.version,
    )
    return model
