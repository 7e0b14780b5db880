"""Standalone CLI for running document ingestion outside the web server.

Usage::

    python -m docingest.cli.ingest init-db

    python -m docingest.cli.ingest register --path reports/q3.pdf \\
        --name "Q3 report.pdf" --folder finance

    python -m docingest.cli.ingest run 2f9c0d1e-... 7a1b...

    python -m docingest.cli.ingest stats 2f9c0d1e-...

``register`` records a file that already sits under ``STORAGE_ROOT`` (or in
the HTTP bucket) as a document; ``run`` ingests documents by id exactly as
the ``/api/v1/process-embedding`` endpoint would.
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import sys
import uuid
from pathlib import PurePosixPath

from docingest.config.settings import Settings


def _build_components(app_settings: Settings) -> dict:
    """Assemble the ingestion pipeline the same way the web app does.

    Imported lazily so ``--help`` does not pay for the openai / FastAPI
    imports.
    """
    from docingest.config.loader import load_config
    from docingest.main import build_ingestion_service

    return build_ingestion_service(app_settings, config=load_config(settings=app_settings))


def _default_concurrency(app_settings: Settings) -> int:
    """Read ``ingestion.ingest_concurrency`` from the merged YAML + env config."""
    from docingest.config.loader import load_config

    tuning = load_config(settings=app_settings).get("ingestion", {})
    return int(tuning.get("ingest_concurrency", app_settings.ingest_concurrency))


def _build_store(app_settings: Settings):  # noqa: ANN202
    from docingest.providers.store.sqlite_chunk_store import SQLiteChunkStore

    return SQLiteChunkStore(db_path=app_settings.sqlite_db_path)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_init_db(app_settings: Settings) -> int:
    """Create the chunk store tables."""
    store = _build_store(app_settings)
    await store.initialize()
    print(f"Initialized chunk store at {app_settings.sqlite_db_path}")
    return 0


async def _handle_register(args: argparse.Namespace, app_settings: Settings) -> int:
    """Record an already-uploaded file as a document."""
    from docingest.models.document import Document

    name = args.name or PurePosixPath(args.path).name
    mime_type = args.mime or mimetypes.guess_type(name)[0] or ""
    document = Document(
        document_id=args.id or str(uuid.uuid4()),
        name=name,
        mime_type=mime_type,
        storage_path=args.path,
        folder_id=args.folder,
    )

    store = _build_store(app_settings)
    await store.initialize()
    await store.register_document(document)

    print(f"Registered document {document.document_id}")
    print(f"  Name:      {document.name}")
    print(f"  MIME type: {document.mime_type or '(unknown)'}")
    print(f"  Path:      {document.storage_path}")
    return 0


async def _handle_run(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ingest one or more registered documents by id."""
    from docingest.models.document import IngestionRequest
    from docingest.utils.errors import ConfigurationError

    try:
        components = _build_components(app_settings)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    store = components["chunk_store"]
    service = components["ingestion_service"]
    await store.initialize()

    requests: list[IngestionRequest] = []
    for document_id in args.document_ids:
        document = await store.get_document(document_id)
        if document is None:
            # Let the service report the missing record like the API would.
            requests.append(IngestionRequest(document_id=document_id, storage_path="-"))
            continue
        requests.append(
            IngestionRequest(
                document_id=document.document_id,
                storage_path=document.storage_path,
                file_name=document.name,
                file_type=document.mime_type,
                folder_id=document.folder_id,
            )
        )

    results = await service.ingest_many(requests, concurrency=args.concurrency)

    failures = 0
    for result in results:
        if result.succeeded:
            print(
                f"{result.document_id}: {result.status.value} "
                f"({result.stored_chunk_count} stored, {result.dropped_chunk_count} dropped, "
                f"{len(result.failed_chunk_ids)} failed, {result.ingestion_time:.2f}s)"
            )
        else:
            failures += 1
            print(
                f"{result.document_id}: {result.status.value} "
                f"[{result.error_type}] {result.detail}",
                file=sys.stderr,
            )

    return 1 if failures else 0


async def _handle_stats(args: argparse.Namespace, app_settings: Settings) -> int:
    """Show the stored state of one document."""
    store = _build_store(app_settings)
    await store.initialize()

    document = await store.get_document(args.document_id)
    if document is None:
        print(f"No document with id {args.document_id}", file=sys.stderr)
        return 1

    count = await store.count_chunks(args.document_id)
    print(f"Document {document.document_id}")
    print("=" * 40)
    print(f"  Name:      {document.name}")
    print(f"  Embedded:  {'yes' if document.embedded else 'no'}")
    print(f"  Chunks:    {count}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser(default_concurrency: int = 2) -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m docingest.cli.ingest",
        description="Extract, chunk, embed and store uploaded documents.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Ingestion commands")

    subparsers.add_parser("init-db", help="Create the chunk store tables")

    register_parser = subparsers.add_parser("register", help="Record an uploaded file")
    register_parser.add_argument("--path", required=True, help="Storage path of the file")
    register_parser.add_argument("--id", help="Document id (default: new UUID)")
    register_parser.add_argument("--name", help="Display name (default: file name)")
    register_parser.add_argument("--mime", help="MIME type (default: guessed from name)")
    register_parser.add_argument("--folder", help="Parent folder id")

    run_parser = subparsers.add_parser("run", help="Ingest registered documents")
    run_parser.add_argument("document_ids", nargs="+", help="Document ids to ingest")
    run_parser.add_argument(
        "--concurrency",
        type=int,
        default=default_concurrency,
        help="Documents ingested in parallel",
    )

    stats_parser = subparsers.add_parser("stats", help="Show a document's stored chunks")
    stats_parser.add_argument("document_id", help="Document id")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ingestion tool."""
    app_settings = Settings()
    parser = _build_parser(default_concurrency=_default_concurrency(app_settings))
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    from docingest.utils.logging import configure_logging

    configure_logging(log_level=app_settings.log_level)

    if args.command == "init-db":
        exit_code = asyncio.run(_handle_init_db(app_settings))
    elif args.command == "register":
        exit_code = asyncio.run(_handle_register(args, app_settings))
    elif args.command == "run":
        exit_code = asyncio.run(_handle_run(args, app_settings))
    elif args.command == "stats":
        exit_code = asyncio.run(_handle_stats(args, app_settings))
    else:
        parser.print_help()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
