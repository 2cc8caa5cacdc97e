#!/usr/bin/env python3
"""Populate the books catalog from Google Books."""
import argparse
import asyncio
import signal
import sys
import threading
from tabulate import tabulate
from catalog_ingest.client import GoogleBooksClient
from catalog_ingest.async_client import AsyncGoogleBooksClient
from catalog_ingest.config import Config, DEFAULT_SEARCH_TERM, DEFAULT_TOTAL_BOOKS
from catalog_ingest.database import Database
from catalog_ingest.errors import IngestError, PipelineCancelled
from catalog_ingest.models import IngestResult
from catalog_ingest.pipeline import IngestPipeline
from catalog_ingest.rate_limiter import RateGovernor
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def setup_database(config: Config) -> Database:
    """Initialize database and check the ISBN conflict key."""
    db = Database(config.DATABASE_URL)
    try:
        db.init_schema()
        db.ensure_isbn_constraint()
    except IngestError:
        db.close()
        raise
    return db


def run_ingest(query: str, count: int, config: Config, cancel_event: threading.Event) -> IngestResult:
    """Run one ingest against the configured store."""
    db = setup_database(config)
    governor = RateGovernor(interval=config.RATE_LIMIT_INTERVAL)

    try:
        if config.INGEST_ASYNC:
            async def run_async():
                async with AsyncGoogleBooksClient(
                    api_key=config.GOOGLE_BOOKS_API_KEY,
                    timeout=config.DEFAULT_TIMEOUT
                ) as client:
                    pipeline = IngestPipeline(client, db, governor, cancel_event=cancel_event)
                    return await pipeline.run_async(query, count)

            result = asyncio.run(run_async())
        else:
            with GoogleBooksClient(
                api_key=config.GOOGLE_BOOKS_API_KEY,
                timeout=config.DEFAULT_TIMEOUT
            ) as client:
                pipeline = IngestPipeline(client, db, governor, cancel_event=cancel_event)
                result = pipeline.run(query, count)

        display_summary(result, db.count_books())
        return result

    finally:
        db.close()


def display_summary(result: IngestResult, total_in_store: int):
    """Print the run summary table."""
    ignored = result.write_result.records_ignored if result.write_result else 0
    rows = [
        ["Search term", result.query],
        ["Target", result.target],
        ["Pages fetched", result.pages_fetched],
        ["Raw records", result.raw_records],
        ["Valid records", result.valid_records],
        ["Skipped (incomplete)", result.records_skipped],
        ["Written", result.records_written],
        ["Ignored (ISBN already stored)", ignored],
        ["Books in catalog", total_in_store],
    ]
    print("\n" + tabulate(rows, tablefmt="grid"))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Fetch books from Google Books and merge them into the catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Defaults: 200 books for "best seller"
  %(prog)s

  # 80 fantasy books
  %(prog)s fantasy 80
        """
    )
    parser.add_argument(
        "query", nargs="?", default=DEFAULT_SEARCH_TERM,
        help=f'Search term (default: "{DEFAULT_SEARCH_TERM}")'
    )
    parser.add_argument(
        "count", nargs="?", type=int, default=DEFAULT_TOTAL_BOOKS,
        help=f"Total books to collect (default: {DEFAULT_TOTAL_BOOKS})"
    )
    args = parser.parse_args(argv)
    if args.count < 1:
        parser.error("count must be a positive integer")
    return args


def main(argv=None):
    """Main CLI entry point."""
    args = parse_args(argv)

    try:
        config = Config().validate()
    except IngestError as e:
        logger.error(f"❌ Configuration error: {e}")
        sys.exit(1)

    cancel_event = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: cancel_event.set())

    try:
        result = run_ingest(args.query, args.count, config, cancel_event)
    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user; a batch that was not yet committed is discarded")
        sys.exit(130)
    except PipelineCancelled as e:
        logger.warning(f"⚠️  {e}")
        sys.exit(130)
    except IngestError as e:
        logger.error(f"❌ Ingest failed: {e}")
        sys.exit(1)

    logger.info(f"✅ {result.records_written} books written to the catalog")


if __name__ == "__main__":
    main()
