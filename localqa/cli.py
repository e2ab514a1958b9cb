"""Command line interface for ingesting and querying a local corpus.

The corpus lives in a snapshot file (``--store``) that is loaded at the start
of each command and written back after commands that change it.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from pypdf.errors import PyPdfError

from .common.config import get_config
from .common.logging import configure_logging
from .errors import RetrievalError
from .service import DocumentQAService
from .store.base import StoreError
from .store.memory import InMemoryChunkStore

logger = structlog.get_logger("localqa.cli")

DEFAULT_STORE_PATH = str(Path(".localqa/store.pkl"))


def _open_service(store_path: str) -> DocumentQAService:
    ingestion_config = get_config("ingestion")
    if Path(store_path).exists():
        store = InMemoryChunkStore.load(store_path)
    else:
        store = InMemoryChunkStore(vector_dimension=ingestion_config.qa_vector_dimension)
    return DocumentQAService(
        store=store,
        ingestion_config=ingestion_config,
        search_config=get_config("search"),
    )


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _progress(percent: float, message: str) -> None:
    logger.debug("Progress", percent=round(percent, 1), message=message)


async def cmd_ingest(args) -> int:
    service = _open_service(args.store)
    for path in args.paths:
        result = await service.ingest_file(path, _progress)
        print(
            f"{path}: document {result.document_id}, "
            f"{result.stats.total_chunks} chunks, {result.stats.total_words} words"
        )
    service.store.save(args.store)
    return 0


async def cmd_query(args) -> int:
    service = _open_service(args.store)
    await service.initialize()
    if args.hybrid:
        response = await service.hybrid_search(args.query, args.document, args.k)
    else:
        response = await service.search(args.query, args.document, args.k)

    if args.jsonl:
        for result in response.results:
            print(json.dumps(result.to_dict(), ensure_ascii=False))
        return 0

    if not response.has_results:
        print(f"No results found ({response.total_searched} chunks searched)")
        return 0

    for result in response.results:
        score = f"similarity={result.similarity:.4f}"
        if result.combined_score is not None:
            score += f" combined={result.combined_score:.4f}"
        print(f"[{result.rank}] {result.document_name} chunk {result.chunk.chunk_index + 1} {score}")
        print(result.chunk.text[:args.max_chars])
        print("-" * 80)
    return 0


async def cmd_suggest(args) -> int:
    service = _open_service(args.store)
    for suggestion in await service.suggest(args.document, args.limit):
        print(suggestion.text)
    return 0


async def cmd_stats(args) -> int:
    service = _open_service(args.store)
    print(json.dumps(await service.get_database_info(), indent=2))
    return 0


async def cmd_export(args) -> int:
    service = _open_service(args.store)
    data = await service.export_document_data(args.document)
    if data is None:
        print(f"Document {args.document} not found", file=sys.stderr)
        return 1
    print(json.dumps(data, indent=2, ensure_ascii=False))
    return 0


async def cmd_delete(args) -> int:
    service = _open_service(args.store)
    if not await service.delete_document(args.document):
        print(f"Document {args.document} not found", file=sys.stderr)
        return 1
    service.store.save(args.store)
    print(f"Deleted document {args.document}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="localqa", description="Local document retrieval")
    p.add_argument("--store", default=DEFAULT_STORE_PATH, help="Path to the corpus snapshot")
    sub = p.add_subparsers(dest="cmd", required=True)

    pi = sub.add_parser("ingest", help="Ingest text or PDF files")
    pi.add_argument("paths", nargs="+", help="Files to ingest")
    pi.set_defaults(func=cmd_ingest)

    pq = sub.add_parser("query", help="Search the corpus")
    pq.add_argument("query", help="Search query")
    pq.add_argument("--document", type=int, default=None, help="Restrict to one document id")
    pq.add_argument("--k", type=_non_negative_int, default=None, help="Number of results")
    pq.add_argument("--hybrid", action="store_true", help="Re-rank with keyword matches")
    pq.add_argument("--max-chars", type=int, default=400)
    pq.add_argument("--jsonl", action="store_true")
    pq.set_defaults(func=cmd_query)

    ps = sub.add_parser("suggest", help="Suggest example queries")
    ps.add_argument("--document", type=int, default=None)
    ps.add_argument("--limit", type=_non_negative_int, default=None)
    ps.set_defaults(func=cmd_suggest)

    pst = sub.add_parser("stats", help="Show corpus statistics")
    pst.set_defaults(func=cmd_stats)

    pe = sub.add_parser("export", help="Export one document's chunks as JSON")
    pe.add_argument("document", type=int)
    pe.set_defaults(func=cmd_export)

    pd = sub.add_parser("delete", help="Delete a document")
    pd.add_argument("document", type=int)
    pd.set_defaults(func=cmd_delete)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_config("ingestion")
    configure_logging("localqa-cli", config.qa_log_level, config.qa_log_format)

    try:
        return asyncio.run(args.func(args))
    except (RetrievalError, StoreError, PyPdfError, OSError) as e:
        logger.error("Command failed", command=args.cmd, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
