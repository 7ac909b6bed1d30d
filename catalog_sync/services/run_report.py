import logging

from catalog_sync.schemas.sync import RunStats

logger = logging.getLogger("run_report")

MAX_ERROR_LINES = 20


def run_verdict(stats: RunStats) -> str:
    if stats.errors:
        return "COMPLETED WITH ERRORS"
    if stats.invalid_local:
        return "COMPLETED WITH WARNINGS"
    if stats.total_updated == 0:
        return "COMPLETED, NO CHANGES NEEDED"
    return "COMPLETED SUCCESSFULLY"


def log_run_summary(stats: RunStats) -> None:
    """Write the end-of-run summary: one line per outcome category, then the error list."""
    logger.info("=" * 60)
    logger.info("SYNC SUMMARY%s", " (DRY RUN)" if stats.dry_run else "")
    logger.info("=" * 60)
    logger.info("Mode: %s | Type: %s", stats.mode.value, stats.sync_type.value)
    logger.info("Duration: %.2fs", stats.duration_seconds)
    logger.info("Items: %s | Processed: %s", stats.total_items, stats.processed)
    logger.info("Price updates: %s", stats.price_updates)
    logger.info("Inventory updates: %s", stats.inventory_updates)
    logger.info("Price + inventory updates: %s", stats.both_updates)
    logger.info("No change: %s", stats.no_change)
    logger.info("Not found locally: %s", stats.not_found_local)
    logger.info("Not found in catalog: %s", stats.not_found_remote)
    logger.info("Invalid local data: %s", stats.invalid_local)
    logger.info("Errors: %s", stats.errors)

    for detail in stats.error_details[:MAX_ERROR_LINES]:
        logger.error("  %s: %s", detail.sku, detail.error)
    if len(stats.error_details) > MAX_ERROR_LINES:
        logger.error("  ... and %s more", len(stats.error_details) - MAX_ERROR_LINES)

    verdict = run_verdict(stats)
    log = logger.warning if stats.has_issues else logger.info
    log("Result: %s (%s items updated)", verdict, stats.total_updated)
    logger.info("=" * 60)
