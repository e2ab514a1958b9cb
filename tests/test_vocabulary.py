"""Tests for tokenization and vocabulary snapshots."""

import dataclasses
import math
import pickle

import pytest

from localqa.embedding.vocabulary import EMPTY_VOCABULARY, build_vocabulary, tokenize
from localqa.errors import EmptyInputError
from localqa.models import Chunk


def test_tokenize_filters_and_lowercases():
    """Test tokenization rules."""
    assert tokenize("Hello, World! a ab abc 12345") == ["hello", "world", "abc", "12345"]


def test_tokenize_punctuation_splits_words():
    """Test that punctuation becomes a separator."""
    assert tokenize("e-mail self-contained") == ["mail", "self", "contained"]


def test_tokenize_length_bounds():
    """Test the 3 to 19 character bounds."""
    assert tokenize("a" * 19) == ["a" * 19]
    assert tokenize("b" * 20) == []
    assert tokenize("ab") == []


def test_tokenize_caps_terms():
    """Test that only the first terms are kept."""
    text = " ".join(f"term{i:03d}" for i in range(150))
    terms = tokenize(text)
    assert len(terms) == 100
    assert terms[0] == "term000"
    assert terms[-1] == "term099"
    assert tokenize(text, max_terms=5) == ["term000", "term001", "term002", "term003", "term004"]


def test_idf_values():
    """Test smoothed IDF over a two-chunk batch."""
    model = build_vocabulary(["cat dog", "dog bird"])

    assert model.num_chunks == 2
    assert dict(model.document_frequency) == {"cat": 1, "dog": 2, "bird": 1}
    assert model.idf["cat"] == pytest.approx(1.0)
    assert model.idf["bird"] == pytest.approx(1.0)
    assert model.idf["dog"] == pytest.approx(math.log(2 / 3) + 1)
    assert model.idf["dog"] == pytest.approx(0.5945, abs=1e-4)


def test_document_frequency_counts_chunks():
    """Test that repeated terms in one chunk count once."""
    model = build_vocabulary(["dog dog dog", "dog cat"])
    assert model.document_frequency["dog"] == 2
    assert model.document_frequency["cat"] == 1


def test_unseen_terms_default_idf():
    """Test that unknown terms weigh 1."""
    model = build_vocabulary(["cat dog"])
    assert "zebra" not in model
    assert model.idf_for("zebra") == 1.0
    assert EMPTY_VOCABULARY.idf_for("cat") == 1.0
    assert len(EMPTY_VOCABULARY) == 0


def test_accepts_chunk_objects():
    """Test building from ``Chunk`` records."""
    chunks = [
        Chunk(document_id=1, chunk_index=0, text="cat dog", token_count=2),
        Chunk(document_id=1, chunk_index=1, text="dog bird", token_count=2),
    ]
    assert build_vocabulary(chunks).version == build_vocabulary(["cat dog", "dog bird"]).version


def test_empty_batch_rejected():
    """Test that an empty batch raises."""
    with pytest.raises(EmptyInputError):
        build_vocabulary([])


def test_model_is_read_only():
    """Test snapshot immutability."""
    model = build_vocabulary(["cat dog"])

    with pytest.raises(TypeError):
        model.idf["cat"] = 5.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        model.num_chunks = 10


def test_version_fingerprint():
    """Test that versions follow content."""
    a = build_vocabulary(["cat dog", "dog bird"])
    b = build_vocabulary(["cat dog", "dog bird"])
    c = build_vocabulary(["cat dog", "dog fish"])

    assert a.version == b.version
    assert a.version != c.version


def test_model_pickles():
    """Test that snapshots survive pickling."""
    model = build_vocabulary(["cat dog", "dog bird"])
    restored = pickle.loads(pickle.dumps(model))

    assert restored.version == model.version
    assert dict(restored.idf) == dict(model.idf)
    with pytest.raises(TypeError):
        restored.idf["cat"] = 5.0
