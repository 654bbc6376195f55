#!/usr/bin/env python
"""Command-line access to a JSON-file vector store.

Usage:
    python -m scripts.vector_store_cli --store data/store.json add "some text" --metadata '{"source": "notes"}'
    python -m scripts.vector_store_cli --store data/store.json search "query text" -k 3
    python -m scripts.vector_store_cli --store data/store.json stats

Embeddings come from the HTTP service configured through the
EMBEDDING_* environment variables.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from vector_storage.config import StorageSettings, get_settings
from vector_storage.exceptions import VectorStorageError
from vector_storage.logging_config import get_logger, setup_logging
from vector_storage.persistence.backend import JSONFileBackend
from vector_storage.store.service import VectorStorage

logger = get_logger(__name__)


def _parse_metadata(raw: str | None) -> dict[str, Any]:
    if raw is None:
        return {}
    metadata = json.loads(raw)
    if not isinstance(metadata, dict):
        raise ValueError("--metadata must be a JSON object")
    return metadata


async def run_command(args: argparse.Namespace) -> int:
    """Execute one CLI command against the store.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Process exit code.
    """
    settings = get_settings().storage
    storage_settings = StorageSettings(
        max_size_in_mb=args.max_size_mb or settings.max_size_in_mb,
        debounce_time_ms=0,
        store_path=str(args.store),
    )

    async with VectorStorage(
        backend=JSONFileBackend(args.store),
        settings=storage_settings,
    ) as store:
        if args.command == "add":
            metadata = _parse_metadata(args.metadata)
            added = await store.add_texts(args.texts, [metadata for _ in args.texts])
            print(f"Added {len(added)} of {len(args.texts)} texts ({len(store)} stored)")

        elif args.command == "search":
            response = await store.similarity_search(
                query=args.query,
                k=args.k,
                include_vectors=args.include_vectors,
            )
            for rank, item in enumerate(response.similar_items, start=1):
                score = "n/a" if item.score is None else f"{item.score:.4f}"
                print(f"{rank}. [{score}] hits={item.hits} {item.text}")
                if item.metadata:
                    print(f"   metadata: {json.dumps(item.metadata)}")
            if not response.similar_items:
                print("No results")

        elif args.command == "stats":
            print(f"Documents: {len(store)}")
            print(f"Size: {store.size_in_mb:.4f} MB of {store.max_size_in_mb} MB")

    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Add to and search a local vector store",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--store",
        type=Path,
        default=Path(get_settings().storage.store_path),
        help="Path to the store JSON file",
    )
    parser.add_argument(
        "--max-size-mb",
        type=float,
        default=None,
        help="Size budget override in MB",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    add_parser = subparsers.add_parser("add", help="Embed and store texts")
    add_parser.add_argument("texts", nargs="+", help="Texts to store")
    add_parser.add_argument(
        "--metadata",
        default=None,
        help="JSON object attached to every text",
    )

    search_parser = subparsers.add_parser("search", help="Similarity search")
    search_parser.add_argument("query", help="Query text")
    search_parser.add_argument("-k", type=int, default=4, help="Number of results")
    search_parser.add_argument(
        "--include-vectors",
        action="store_true",
        help="Return vectors with results",
    )

    subparsers.add_parser("stats", help="Show store size")

    args = parser.parse_args()
    setup_logging(level=args.log_level, json_output=False)

    try:
        exit_code = asyncio.run(run_command(args))
    except (VectorStorageError, ValueError) as e:
        logger.error(f"Command failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
