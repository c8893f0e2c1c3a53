#!/usr/bin/env python3
"""
Load exam results into the configured document store.

Accepts a JSON file (a list of objects, or an object with a "results" list)
or a CSV file with a header row. Every row needs a ``seatNumber``.
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

# Project root on the path so the script runs from anywhere
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from config import load_config
from core import setup_logger
from database import SubmissionStore, create_document_store

logger = logging.getLogger(__name__)


def read_rows(path: Path) -> List[Dict[str, Any]]:
    """Parse result rows from a JSON or CSV file."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        if isinstance(data, dict):
            data = data.get("results", [])
        if not isinstance(data, list):
            raise ValueError("JSON input must be a list of result objects")
        return [row for row in data if isinstance(row, dict)]
    if suffix == ".csv":
        with open(path, newline="", encoding="utf-8-sig") as fh:
            return [dict(row) for row in csv.DictReader(fh)]
    raise ValueError(f"Unsupported file type: {suffix or path.name}")


async def import_file(path: Path) -> int:
    config = load_config()
    documents = create_document_store(
        config.storage_backend,
        config.database_path,
        pool_size=1,
        busy_timeout_ms=config.db_busy_timeout,
    )
    await documents.initialize()
    try:
        return await SubmissionStore(documents).import_results(read_rows(path))
    finally:
        await documents.close()


def main() -> int:
    parser = argparse.ArgumentParser(description="Import exam results")
    parser.add_argument("file", type=Path, help="JSON or CSV file with result rows")
    args = parser.parse_args()

    setup_logger(name="app", level=logging.INFO)

    if not args.file.exists():
        logger.error(f"File not found: {args.file}")
        return 1

    try:
        count = asyncio.run(import_file(args.file))
    except (ValueError, csv.Error) as e:
        logger.error(f"Could not read {args.file}: {e}")
        return 1

    logger.info(f"✅ Imported {count} results from {args.file}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
