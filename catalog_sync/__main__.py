"""
Command-line entry point.

    python -m catalog_sync [--mode shopify_first|local_first]
                           [--type price|inventory|both] [--dry-run]

Flags override the matching environment settings. Exit code is 1 on
configuration or fatal setup errors, 0 otherwise (item-level errors are
reported in the summary and do not change the exit code).
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

import httpx

from catalog_sync.container import build_sync_service
from catalog_sync.core.config import SYNC_MODES, SYNC_TYPES, Settings, get_settings
from catalog_sync.core.exceptions import CatalogSyncException
from catalog_sync.core.logging_config import configure_logging
from catalog_sync.schemas.sync import RunStats

logger = logging.getLogger("catalog_sync")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="catalog_sync",
        description="Reconcile Shopify prices and inventory against the local price feed and ledger.",
    )
    parser.add_argument(
        "--mode", choices=SYNC_MODES,
        help="Which side defines the set of SKUs to reconcile (default: SYNC_MODE or shopify_first).",
    )
    parser.add_argument(
        "--type", dest="sync_type", choices=SYNC_TYPES,
        help="What to sync (default: SYNC_TYPE or both).",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Compute and log every change without writing to Shopify.",
    )
    return parser.parse_args(argv)


def apply_overrides(cfg: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.mode:
        overrides["sync_mode"] = args.mode
    if args.sync_type:
        overrides["sync_type"] = args.sync_type
    if args.dry_run:
        overrides["sync_dry_run"] = True
    return cfg.model_copy(update=overrides) if overrides else cfg


async def run_sync(cfg: Settings) -> RunStats:
    async with httpx.AsyncClient(timeout=cfg.api_timeout_seconds) as http:
        service = build_sync_service(http, cfg)
        return await service.run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    cfg = apply_overrides(get_settings(), args)
    configure_logging(cfg.log_level, cfg.log_file_path)

    config_errors = cfg.validate_required()
    if config_errors:
        logger.error("configuration errors:")
        for err in config_errors:
            logger.error("  %s", err)
        return 1

    try:
        asyncio.run(run_sync(cfg))
    except CatalogSyncException as exc:
        logger.critical("sync aborted: %s", exc)
        return 1
    except KeyboardInterrupt:
        logger.warning("sync interrupted by user")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
