"""Status sweep that finalizes listings and bids once auctions run out.

The sweep has no inputs and is idempotent. It is triggered from outside the
domain logic: by POST /api/auction/reconcile, by the interval worker in
``auction_app.workers.auction_status_worker``, or by any external scheduler
calling that worker module.

Steps run in a fixed order because later ones read statuses written by
earlier ones:

1. listings past expiry whose Active bid is the product's highest -> Sold
2. listings still "In Auction" past expiry with no bids at all -> Expired
3. Active bids of Expired listings -> Expired
4. Active highest bids of Sold listings -> Won
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased

from auction_app.config import settings
from auction_app.models_sqlalchemy.models import (
    AuctionBid,
    AuctionListing,
    BidStatus,
    ListingStatus,
    utcnow,
)
from auction_app.utils.logger import logger


@dataclass
class ReconcileSummary:
    listings_sold: int = 0
    listings_expired: int = 0
    bids_expired: int = 0
    bids_won: int = 0
    timestamp: datetime = field(default_factory=utcnow)

    @property
    def changed(self) -> int:
        return self.listings_sold + self.listings_expired + self.bids_expired + self.bids_won

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


def _expirable_listing_statuses() -> list[str]:
    # Listings are created as "Active", so the legacy "In Auction" literal
    # alone never matches a real row.
    statuses = [ListingStatus.in_auction.value]
    if settings.AUCTION_EXPIRE_ACTIVE_LISTINGS:
        statuses.append(ListingStatus.active.value)
    return statuses


def _mark_sold_listings(db: Session, now: datetime) -> int:
    bid = aliased(AuctionBid)
    peer = aliased(AuctionBid)
    highest_amount = (
        select(func.max(peer.bid_amount)).where(peer.product_id == bid.product_id).scalar_subquery()
    )
    products_with_winning_bid = select(bid.product_id).where(
        bid.status == BidStatus.active.value,
        bid.bid_amount == highest_amount,
    )
    stmt = (
        update(AuctionListing)
        .where(
            AuctionListing.product_id.in_(products_with_winning_bid),
            AuctionListing.expire_date < now,
            AuctionListing.status != ListingStatus.sold.value,
        )
        .values(status=ListingStatus.sold.value)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def _mark_expired_listings(db: Session, now: datetime) -> int:
    has_bids = select(AuctionBid.bid_id).where(AuctionBid.product_id == AuctionListing.product_id).exists()
    stmt = (
        update(AuctionListing)
        .where(
            AuctionListing.status.in_(_expirable_listing_statuses()),
            AuctionListing.expire_date < now,
            ~has_bids,
        )
        .values(status=ListingStatus.expired.value)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def _mark_expired_bids(db: Session) -> int:
    expired_products = select(AuctionListing.product_id).where(
        AuctionListing.status == ListingStatus.expired.value
    )
    stmt = (
        update(AuctionBid)
        .where(
            AuctionBid.status == BidStatus.active.value,
            AuctionBid.product_id.in_(expired_products),
        )
        .values(status=BidStatus.expired.value)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def _mark_won_bids(db: Session) -> int:
    peer = aliased(AuctionBid)
    highest_amount = (
        select(func.max(peer.bid_amount))
        .where(peer.product_id == AuctionBid.product_id)
        .scalar_subquery()
    )
    sold_products = select(AuctionListing.product_id).where(
        AuctionListing.status == ListingStatus.sold.value
    )
    stmt = (
        update(AuctionBid)
        .where(
            AuctionBid.status == BidStatus.active.value,
            AuctionBid.bid_amount == highest_amount,
            AuctionBid.product_id.in_(sold_products),
        )
        .values(status=BidStatus.won.value)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount


def reconcile_statuses(db: Session, now: Optional[datetime] = None) -> ReconcileSummary:
    """Run the four sweep steps in one transaction and commit."""
    now = now or utcnow()
    summary = ReconcileSummary(timestamp=now)
    try:
        summary.listings_sold = _mark_sold_listings(db, now)
        summary.listings_expired = _mark_expired_listings(db, now)
        summary.bids_expired = _mark_expired_bids(db)
        summary.bids_won = _mark_won_bids(db)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Auction status sweep: sold=%d listings_expired=%d bids_expired=%d won=%d",
        summary.listings_sold,
        summary.listings_expired,
        summary.bids_expired,
        summary.bids_won,
    )
    return summary
