"""Auction status background worker.

Periodically runs the auction status sweep: expired listings are marked
Sold or Expired and their standing bids become Won or Expired.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict

from auction_app.models_sqlalchemy import SessionLocal
from auction_app.models_sqlalchemy.models import utcnow
from auction_app.services.auction_reconciler import reconcile_statuses
from auction_app.utils.logger import logger


async def reconcile_auction_statuses_once() -> Dict[str, Any]:
    """Run one sweep on a fresh session and report what changed."""
    logger.info("Auction status worker: sweeping listings and bids...")

    db = SessionLocal()
    try:
        summary = reconcile_statuses(db)
        return {"status": "ok", **summary.as_dict()}
    except Exception as exc:  # pragma: no cover - safety net
        logger.error("Auction status worker failed: %s", exc, exc_info=True)
        return {"status": "error", "error": str(exc), "timestamp": utcnow().isoformat()}
    finally:
        db.close()


async def run_auction_status_worker_loop(interval_seconds: int = 60) -> None:
    """Run the status sweep in a simple interval loop."""
    logger.info("Auction status worker loop started (interval=%s seconds)", interval_seconds)

    while True:
        try:
            result = await reconcile_auction_statuses_once()
            logger.info("Auction status worker cycle completed: %s", result)
        except Exception as exc:  # pragma: no cover - safety net
            logger.error("Auction status worker loop error: %s", exc, exc_info=True)

        await asyncio.sleep(interval_seconds)


if __name__ == "__main__":
    # One-shot run for external schedulers (cron, k8s CronJob, ...).
    asyncio.run(reconcile_auction_statuses_once())
