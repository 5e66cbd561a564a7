"""Worker process for the daily balance reconciliation.

Runs an asyncio loop that refreshes the accumulated-leave and status caches
of every current-year balance record once per configured interval.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

from leave_engine.config import get_settings
from leave_engine.db import session_scope
from leave_engine.middleware import setup_logging
from leave_engine.services.balance import ReconciliationResult, reconcile_year

logger = logging.getLogger(__name__)


async def run_reconciliation_once(today: date | None = None) -> ReconciliationResult:
    """Reconcile the current year's records in a fresh session."""
    today = today or date.today()
    async with session_scope() as session:
        return await reconcile_year(session, today.year, today)


async def run_reconciliation_loop() -> None:
    """Main worker loop: reconcile once per interval until cancelled."""
    interval = get_settings().worker_interval_seconds
    logger.info("Reconciliation worker started, interval=%ds", interval)

    while True:
        today = date.today()
        try:
            result = await run_reconciliation_once(today)
            logger.info(
                "Reconciliation complete for %s: processed=%d corrected=%d",
                result.year,
                result.processed,
                result.corrected,
            )
        except Exception:
            logger.exception("Reconciliation run failed for %s", today)

        await asyncio.sleep(interval)


def main() -> None:
    """Entry point for the worker process."""
    setup_logging(get_settings())
    asyncio.run(run_reconciliation_loop())


if __name__ == "__main__":
    main()
