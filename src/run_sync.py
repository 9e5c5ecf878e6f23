"""Bulk Sync CLI Entry Point

Re-indexes every item of the configured Webflow collection into Algolia.
Reads its configuration from the environment (and a .env file if present),
runs the bulk pipeline once and exits.

Usage:
    python -m run_sync --dry-run --limit 20
    python -m run_sync --index-name posts_staging

Exit codes: 0 on success, 1 if the run failed or any batch write failed,
2 on configuration errors.
"""

import argparse
import asyncio
import dataclasses
import logging
import time

from dotenv import load_dotenv

from webflow_sync.config import Settings, check_minimum
from webflow_sync.errors import ConfigError
from webflow_sync.logging_setup import configure_logging
from webflow_sync.pipeline import run_pipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Sync Webflow collection items into an Algolia index"
    )
    parser.add_argument(
        "--index-name",
        default=None,
        help="Algolia index to write to (default: ALGOLIA_INDEX_NAME or 'posts')",
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Items per Webflow page and per Algolia batch (default: 100)",
    )
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Attempts per page before giving up; 0 retries forever (default: 5)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Optional limit on number of documents to submit.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and transform items but don't write to Algolia",
    )
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Apply CLI flags on top of environment settings.

    Raises:
        ConfigError: If --page-size is below 1 or --max-attempts is negative
    """
    overrides = {}
    if args.index_name:
        overrides["index_name"] = args.index_name
    if args.page_size is not None:
        overrides["page_size"] = check_minimum("--page-size", args.page_size, 1)
    if args.max_attempts is not None:
        # 0 means "retry forever"
        attempts = check_minimum("--max-attempts", args.max_attempts, 0)
        overrides["max_attempts"] = attempts or None
    return dataclasses.replace(settings, **overrides)


def main(argv=None) -> int:
    """
    CLI entrypoint for the bulk sync.

    Parses command-line arguments, runs the sync end-to-end,
    and returns a Unix-style exit code.
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        settings = apply_overrides(Settings.from_env(), args)
    except ConfigError as e:
        configure_logging()
        logging.getLogger(__name__).error("Configuration error: %s", e)
        return 2

    configure_logging(settings.log_level)
    logger = logging.getLogger(__name__)

    logger.info("=== Starting Webflow -> Algolia bulk sync ===")
    logger.info("Collection: %s", settings.collection_id)
    logger.info("Categories collection: %s", settings.categories_collection_id)
    logger.info("Index: %s", settings.index_name)
    logger.info("Page size: %d", settings.page_size)
    logger.info("Max attempts per page: %s", settings.max_attempts or "unbounded")
    logger.info("Limit: %s", args.limit if args.limit is not None else "None (all documents)")
    if args.dry_run:
        logger.info("DRY RUN MODE: Will not write to Algolia")

    try:
        start_time = time.time()
        summary = asyncio.run(
            run_pipeline(settings, dry_run=args.dry_run, limit=args.limit)
        )
        elapsed_time = time.time() - start_time
    except Exception as e:
        logger.exception(f"Sync failed with an unhandled exception: {e}")
        return 1

    logger.info("=" * 70)
    logger.info("Sync finished in %.2fs", elapsed_time)
    logger.info("")
    logger.info("Summary:")
    logger.info("  Categories: %d", summary.categories)
    logger.info("  Pages:      %d", summary.pages)
    logger.info("  Items:      %d (skipped %d)", summary.items, summary.skipped)
    logger.info("  Submitted:  %d documents", summary.submitted)
    logger.info("  Batches:    %d ok, %d failed", summary.batches_ok, summary.batches_failed)
    logger.info("=" * 70)

    if not summary.ok:
        logger.error("Sync completed with %d failed batches", summary.batches_failed)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
