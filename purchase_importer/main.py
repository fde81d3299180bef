"""Main entry point with CLI."""
import argparse
import asyncio
import getpass
import logging
import os
import sys

from purchase_importer.config import config, Config
from purchase_importer.errors import ImporterError
from purchase_importer.fetch.client import BrowserSession
from purchase_importer.jobs.run_control import ImportControl
from purchase_importer.jobs.runner import persist_products, run_import
from purchase_importer.logging_conf import setup_logging
from purchase_importer.parse.models import ImportCredentials
from purchase_importer.retailers import supported_retailers
from purchase_importer.store.dev_storage import DevStorage
from purchase_importer.store.supabase_writer import SupabaseStore

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Retailer purchase history importer")

    parser.add_argument(
        "--retailer",
        required=True,
        choices=supported_retailers(),
        help="Retailer to import from",
    )
    parser.add_argument(
        "--username",
        default=os.getenv("RETAILER_USERNAME"),
        help="Retailer account email (default: $RETAILER_USERNAME)",
    )
    parser.add_argument(
        "--user-id",
        default=None,
        help="Supabase user id to store products for",
    )

    # Mode flags
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode (verbose logs, visible browser, local storage)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Dry run: no Supabase writes",
    )
    parser.add_argument(
        "--store-dev",
        action="store_true",
        help="Save redacted results under data/dev/",
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window",
    )

    # Run control
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help=f"Maximum order pages to load (default: {config.MAX_ORDER_PAGES})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"Overall import timeout in seconds (default: {config.IMPORT_TIMEOUT})",
    )

    return parser.parse_args(argv)


def _read_password() -> str:
    password = os.getenv("RETAILER_PASSWORD")
    if password:
        return password
    return getpass.getpass("Retailer password: ")


async def run(args: argparse.Namespace, credentials: ImportCredentials) -> int:
    """Run one import and optionally persist it. Returns the exit code."""
    timeout = args.timeout or config.IMPORT_TIMEOUT
    control = ImportControl(
        max_pages=args.max_pages or config.MAX_ORDER_PAGES,
        timeout_seconds=timeout,
    )
    headless = not (args.headful or args.dev)

    try:
        result = await asyncio.wait_for(
            run_import(
                credentials,
                session_factory=lambda: BrowserSession(headless=headless),
                control=control,
            ),
            timeout=timeout,
        )
    except ImporterError as e:
        logger.error(f"Import failed ({type(e).__name__}): {e}")
        return 2
    except asyncio.TimeoutError:
        logger.error(f"Import exceeded {timeout}s")
        return 2
    finally:
        credentials.clear()

    if args.store_dev or args.dev:
        DevStorage().save_import(result)

    if args.dry_run:
        logger.info(f"DRY-RUN: {len(result.products)} products not written")
        return 0

    store = SupabaseStore()
    persisted = await persist_products(store, args.user_id, result.retailer, result.products)
    logger.info(
        f"Stored {len(persisted.inserted)} products "
        f"({persisted.skipped_duplicates} duplicates skipped)"
    )
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    # Setup logging
    setup_logging()

    # Parse args
    args = parse_args(argv)

    if args.dev:
        logging.getLogger().setLevel(logging.DEBUG)
        # DEV never writes to Supabase
        args.dry_run = True

    if not args.username:
        logger.error("Must specify --username or RETAILER_USERNAME")
        sys.exit(1)
    if not args.dry_run and not args.user_id:
        logger.error("Must specify --user-id unless running with --dry-run")
        sys.exit(1)

    # Validate config (skip Supabase validation in dry-run)
    try:
        Config.validate(require_supabase=not args.dry_run)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    credentials = ImportCredentials(
        retailer=args.retailer,
        username=args.username,
        password=_read_password(),
    )
    args.username = None

    logger.info("=" * 60)
    logger.info("Retailer Importer Starting")
    logger.info(f"Mode: {'DEV' if args.dev else 'PROD'}")
    logger.info(f"Retailer: {args.retailer}")
    logger.info(f"Dry-run: {args.dry_run}")
    logger.info("=" * 60)

    try:
        exit_code = asyncio.run(run(args, credentials))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
