"""Tests for word-window chunking."""

import pytest

from localqa.errors import EmptyInputError
from localqa.ingestion.chunker import Chunker


def _words(n):
    return [f"w{i}" for i in range(n)]


def test_default_windows_overlap():
    """Test 1000 words split into three overlapping chunks."""
    words = _words(1000)
    chunks = Chunker().chunk(" ".join(words), document_id=1)

    assert len(chunks) == 3
    assert chunks[0].text.split() == words[0:500]
    assert chunks[1].text.split() == words[450:950]
    assert chunks[2].text.split() == words[900:1000]
    assert [c.token_count for c in chunks] == [500, 500, 100]
    assert [c.chunk_index for c in chunks] == [0, 1, 2]
    assert all(c.document_id == 1 for c in chunks)


def test_window_spans():
    """Test window spans for the default settings."""
    assert list(Chunker().windows(1000)) == [(0, 500), (450, 950), (900, 1000)]
    assert list(Chunker().windows(500)) == [(0, 500)]
    assert list(Chunker().windows(0)) == []


def test_overlap_at_or_above_size_terminates():
    """Test that a step below one is clamped so chunking ends."""
    chunker = Chunker(max_chunk_size=5, overlap=10, min_text_length=0)
    assert chunker.step == 1

    spans = list(chunker.windows(12))
    assert spans[0] == (0, 5)
    assert spans[-1] == (7, 12)
    assert len(spans) == 8


@pytest.mark.parametrize("size,overlap,n", [
    (1, 0, 7),
    (3, 1, 10),
    (4, 4, 9),
    (10, 2, 10),
    (10, 2, 11),
    (500, 50, 1234),
])
def test_windows_cover_every_token(size, overlap, n):
    """Test windows cover every position with strictly increasing starts."""
    spans = list(Chunker(size, overlap).windows(n))

    covered = set()
    for start, end in spans:
        assert end - start <= size
        covered.update(range(start, end))
    assert covered == set(range(n))

    starts = [s for s, _ in spans]
    assert starts == sorted(set(starts))


def test_short_text_rejected():
    """Test that text shorter than the minimum raises."""
    chunker = Chunker()
    with pytest.raises(EmptyInputError):
        chunker.chunk("too short", 1)
    with pytest.raises(EmptyInputError):
        chunker.chunk("      \n\t      ", 1)
    with pytest.raises(EmptyInputError):
        chunker.chunk("", 1)


def test_chunk_text_stats():
    """Test chunking statistics."""
    chunks, stats = Chunker().chunk_text(" ".join(_words(1000)), 7)

    assert stats.total_words == 1000
    assert stats.total_chunks == len(chunks) == 3
    assert stats.avg_chunk_size == pytest.approx(1100 / 3)


def test_whitespace_is_normalized():
    """Test that runs of whitespace collapse to single spaces."""
    chunks = Chunker(max_chunk_size=3, overlap=0).chunk("alpha \n beta\t\tgamma   delta", 1)
    assert [c.text for c in chunks] == ["alpha beta gamma", "delta"]


def test_invalid_settings():
    """Test constructor validation."""
    with pytest.raises(ValueError):
        Chunker(max_chunk_size=0)
    with pytest.raises(ValueError):
        Chunker(overlap=-1)
