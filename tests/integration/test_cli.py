"""Integration tests for the command line interface."""

import json

import pytest

from localqa.cli import main

TEXT = (
    "Bees pollinate flowering plants across the meadow. "
    "Honey is made from nectar collected by worker bees. "
    "A colony can hold tens of thousands of bees."
)


@pytest.fixture
def corpus(tmp_path):
    source = tmp_path / "bees.txt"
    source.write_text(TEXT, encoding="utf-8")
    store = tmp_path / "store" / "corpus.pkl"
    assert main(["--store", str(store), "ingest", str(source)]) == 0
    return str(store)


@pytest.mark.integration
def test_ingest_and_stats(corpus, capsys):
    """Test ingesting a file and reading statistics."""
    capsys.readouterr()
    assert main(["--store", corpus, "stats"]) == 0

    info = json.loads(capsys.readouterr().out)
    assert info["stats"] == {"documents": 1, "chunks": 1}
    assert info["documents"][0]["filename"] == "bees.txt"


@pytest.mark.integration
def test_query_jsonl(corpus, capsys):
    """Test machine-readable query output."""
    capsys.readouterr()
    assert main(["--store", corpus, "query", "honey nectar bees", "--jsonl"]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    result = json.loads(lines[0])
    assert result["rank"] == 1
    assert result["document_name"] == "bees.txt"
    assert result["combined_score"] is None


@pytest.mark.integration
def test_query_hybrid(corpus, capsys):
    """Test hybrid query output."""
    capsys.readouterr()
    assert main(["--store", corpus, "query", "honey bees", "--hybrid", "--max-chars", "20"]) == 0

    out = capsys.readouterr().out
    assert "[1] bees.txt chunk 1" in out
    assert "combined=" in out


@pytest.mark.integration
def test_suggest_and_export(corpus, capsys):
    """Test suggestions and document export."""
    capsys.readouterr()
    assert main(["--store", corpus, "suggest", "--limit", "1"]) == 0
    assert capsys.readouterr().out.strip() == "Bees pollinate flowering plants across the meadow"

    assert main(["--store", corpus, "export", "1"]) == 0
    exported = json.loads(capsys.readouterr().out)
    assert exported["chunks"][0]["text"] == TEXT

    assert main(["--store", corpus, "export", "7"]) == 1


@pytest.mark.integration
def test_delete_persists(corpus, capsys):
    """Test deletion is written back to the snapshot."""
    assert main(["--store", corpus, "delete", "1"]) == 0
    assert main(["--store", corpus, "delete", "1"]) == 1

    capsys.readouterr()
    assert main(["--store", corpus, "stats"]) == 0
    assert json.loads(capsys.readouterr().out)["stats"] == {"documents": 0, "chunks": 0}


@pytest.mark.integration
def test_errors_exit_nonzero(tmp_path, capsys):
    """Test failures are reported with a non-zero exit code."""
    store = str(tmp_path / "corpus.pkl")
    assert main(["--store", store, "ingest", str(tmp_path / "missing.txt")]) == 1
    assert main(["--store", store, "query", "   "]) == 1
    assert "error:" in capsys.readouterr().err


@pytest.mark.integration
def test_query_rejects_negative_k(corpus, capsys):
    """Test the result count option refuses negative values."""
    with pytest.raises(SystemExit) as exc:
        main(["--store", corpus, "query", "honey bees", "--k", "-1"])
    assert exc.value.code == 2
    assert "must not be negative" in capsys.readouterr().err


@pytest.mark.integration
def test_unreadable_pdf_exits_nonzero(tmp_path, capsys):
    """Test a broken PDF is reported as an error."""
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"")
    assert main(["--store", str(tmp_path / "corpus.pkl"), "ingest", str(broken)]) == 1
    assert "error:" in capsys.readouterr().err
