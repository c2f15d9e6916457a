"""
Background workers for the auction service.

Workers:
- auction_status_worker: runs the auction status sweep on an interval
  (RECONCILER_INTERVAL_SECONDS) when RECONCILER_ENABLED is set
"""

from auction_app.workers.auction_status_worker import (
    reconcile_auction_statuses_once,
    run_auction_status_worker_loop,
)

__all__ = [
    "reconcile_auction_statuses_once",
    "run_auction_status_worker_loop",
]
