"""Tests for the document ingestion pipeline."""

import numpy as np
import pytest

from localqa.embedding.encoder import VectorEncoder
from localqa.errors import EmptyInputError, NotInitializedError
from localqa.ingestion.chunker import Chunker
from localqa.ingestion.pipeline import DocumentIngestor
from localqa.store.memory import InMemoryChunkStore

TEXT = (
    "Solar panels convert sunlight into electricity. "
    "Wind turbines capture kinetic energy from moving air. "
    "Batteries store surplus power for cloudy evenings. "
    "Grid operators balance supply and demand every second."
)


class FlakyEncoder(VectorEncoder):
    """Encoder that fails on texts containing a marker word."""

    def encode(self, text, model=None):
        if "BROKEN" in text:
            raise RuntimeError("cannot encode")
        return super().encode(text, model)


async def _ready_encoder(cls=VectorEncoder):
    encoder = cls()
    await encoder.initialize()
    return encoder


@pytest.mark.asyncio
async def test_ingest_text_stores_everything():
    """Test chunks, vectors, vocabulary, and metadata are stored."""
    store = InMemoryChunkStore()
    encoder = await _ready_encoder()
    ingestor = DocumentIngestor(store, encoder, chunker=Chunker(max_chunk_size=8, overlap=2))
    document_id = await store.create_document("energy.txt")
    progress = []

    result = await ingestor.ingest_text(document_id, TEXT, lambda pct, msg: progress.append((pct, msg)))

    stored = await store.get_document_chunks(document_id)
    assert len(stored) == len(result.chunks) == result.stats.total_chunks
    assert [c.chunk_index for c in stored] == list(range(len(stored)))
    for chunk in stored:
        assert chunk.embedding.shape == (384,)
        assert np.linalg.norm(chunk.embedding) == pytest.approx(1.0, rel=1e-5)

    vocabulary = await store.get_vocabulary(document_id)
    assert vocabulary.version == result.vocabulary.version
    assert vocabulary.num_chunks == len(stored)
    assert (await store.get_document(document_id)).total_chunks == len(stored)

    percents = [pct for pct, _ in progress]
    assert percents == sorted(percents)
    assert progress[0] == (55, "Creating text chunks...")
    assert progress[-1] == (100, "Processing complete!")


@pytest.mark.asyncio
async def test_vocabulary_complete_before_encoding():
    """Test encoding sees the whole batch's vocabulary and an empty store."""
    store = InMemoryChunkStore()
    encoder = await _ready_encoder()
    ingestor = DocumentIngestor(store, encoder, chunker=Chunker(max_chunk_size=8, overlap=2))
    document_id = await store.create_document("energy.txt")
    seen = {}
    encode_batch = encoder.encode_batch

    async def spy(chunks, model, **kwargs):
        seen["num_chunks"] = model.num_chunks
        seen["batch"] = len(chunks)
        seen["stored"] = (await store.get_stats())["chunks"]
        return await encode_batch(chunks, model, **kwargs)

    encoder.encode_batch = spy
    await ingestor.ingest_text(document_id, TEXT)

    assert seen["num_chunks"] == seen["batch"]
    assert seen["stored"] == 0


@pytest.mark.asyncio
async def test_chunk_failure_stores_zero_vector():
    """Test one failing chunk does not fail the document."""
    store = InMemoryChunkStore()
    encoder = await _ready_encoder(FlakyEncoder)
    ingestor = DocumentIngestor(store, encoder, chunker=Chunker(max_chunk_size=5, overlap=0))
    document_id = await store.create_document("flaky.txt")

    await ingestor.ingest_text(
        document_id,
        "alpha beta gamma delta epsilon BROKEN zeta theta iota kappa",
    )

    stored = await store.get_document_chunks(document_id)
    assert len(stored) == 2
    assert stored[0].embedding.any()
    assert not stored[1].embedding.any()


@pytest.mark.asyncio
async def test_empty_text_writes_nothing():
    """Test that empty input leaves the store untouched."""
    store = InMemoryChunkStore()
    ingestor = DocumentIngestor(store, await _ready_encoder())
    document_id = await store.create_document("empty.txt")

    with pytest.raises(EmptyInputError):
        await ingestor.ingest_text(document_id, "   ")

    assert await store.get_document_chunks(document_id) == []
    assert await store.get_vocabulary(document_id) is None


@pytest.mark.asyncio
async def test_uninitialized_encoder_writes_nothing():
    """Test ingestion before encoder initialization."""
    store = InMemoryChunkStore()
    ingestor = DocumentIngestor(store, VectorEncoder())
    document_id = await store.create_document("energy.txt")

    with pytest.raises(NotInitializedError):
        await ingestor.ingest_text(document_id, TEXT)

    assert await store.get_document_chunks(document_id) == []


@pytest.mark.asyncio
async def test_ingest_new_document_cleans_up_on_failure():
    """Test the document record is removed when ingestion fails."""
    store = InMemoryChunkStore()
    ingestor = DocumentIngestor(store, await _ready_encoder())

    with pytest.raises(EmptyInputError):
        await ingestor.ingest_new_document("short.txt", "tiny")

    assert await store.get_stats() == {"documents": 0, "chunks": 0}


@pytest.mark.asyncio
async def test_ingest_file(tmp_path):
    """Test ingesting a text file."""
    path = tmp_path / "energy.txt"
    path.write_text(TEXT, encoding="utf-8")
    store = InMemoryChunkStore()
    ingestor = DocumentIngestor(store, await _ready_encoder())
    progress = []

    result = await ingestor.ingest_file(path, lambda pct, msg: progress.append(pct))

    document = await store.get_document(result.document_id)
    assert document.filename == "energy.txt"
    assert document.file_size == path.stat().st_size
    assert document.total_chunks == 1
    assert progress[0] == 5
    assert progress[-1] == 100
    assert progress == sorted(progress)


@pytest.mark.asyncio
async def test_ingest_missing_file(tmp_path):
    """Test extraction failures create no document."""
    store = InMemoryChunkStore()
    ingestor = DocumentIngestor(store, await _ready_encoder())

    with pytest.raises(OSError):
        await ingestor.ingest_file(tmp_path / "missing.txt")

    assert await store.get_stats() == {"documents": 0, "chunks": 0}
