from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased

from auction_app.config import settings
from auction_app.models_sqlalchemy.models import (
    AuctionBid,
    AuctionListing,
    AuctionThreshold,
    BidStatus,
    ListingStatus,
    utcnow,
)
from auction_app.services.auction_errors import NotFoundError, ValidationError
from auction_app.services.product_catalog import product_catalog
from auction_app.utils.logger import logger

MONEY_QUANTUM = Decimal("0.0001")
# Largest magnitude a Numeric(19, 4) column holds
MONEY_MAX = Decimal("999999999999999.9999")


def to_decimal(value) -> Decimal:
    """Parse a money input as an exact Decimal, without rounding."""
    if isinstance(value, Decimal):
        parsed = value
    else:
        try:
            parsed = Decimal(str(value))
        except InvalidOperation:
            raise ValidationError(f"Invalid money amount: {value!r}.") from None
    if not parsed.is_finite():
        raise ValidationError(f"Invalid money amount: {value!r}.")
    return parsed


def to_money(value) -> Decimal:
    """Coerce ints, floats, strings and Decimals to the 4-place money scale."""
    value = to_decimal(value)
    if abs(value) > MONEY_MAX:
        raise ValidationError(f"Money amount {value} is out of range.")
    return value.quantize(MONEY_QUANTUM)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass
class BidPlacement:
    bid: AuctionBid
    bid_log: List[AuctionBid]


class AuctionService:
    """Listing, bidding and history operations over the auction tables.

    Every public method runs as one transaction on the given session: it
    commits on success and rolls back on any exception before re-raising.
    """

    # ------------------------------------------------------------------ #
    # listings
    # ------------------------------------------------------------------ #

    def default_initial_bid_price(self, list_price, make_flag: Optional[bool]) -> Decimal:
        """Opening price when none is given.

        Manufactured goods (MakeFlag=1) get the steeper discount.
        """
        ratio = settings.AUCTION_MANUFACTURED_DISCOUNT if make_flag else settings.AUCTION_PURCHASED_DISCOUNT
        return to_money(to_money(list_price) * Decimal(str(ratio)))

    def create_listing(
        self,
        db: Session,
        product_id: int,
        expire_date: Optional[datetime] = None,
        initial_bid_price=None,
    ) -> List[AuctionListing]:
        try:
            product = product_catalog.get_sellable_product(db, product_id)
            if product is None:
                raise ValidationError("Product is not currently commercialized")

            existing = (
                db.query(AuctionListing.auction_id)
                .filter(AuctionListing.product_id == product_id)
                .first()
            )
            if existing is not None:
                raise ValidationError("Product is already listed in the auction")

            if expire_date is None:
                expire_date = utcnow() + timedelta(days=settings.AUCTION_DEFAULT_DURATION_DAYS)
            else:
                expire_date = to_naive_utc(expire_date)

            if initial_bid_price is None:
                initial_bid_price = self.default_initial_bid_price(product.list_price, product.make_flag)
            else:
                initial_bid_price = to_decimal(initial_bid_price)

            min_bid = to_money(settings.AUCTION_DEFAULT_MIN_BID)
            if initial_bid_price < min_bid:
                # MaxBid is the initial bid price, so it may never fall under MinBid.
                raise ValidationError(
                    f"Initial bid price {initial_bid_price} is below the Minimum Bid {min_bid}."
                )
            initial_bid_price = to_money(initial_bid_price)

            listing = AuctionListing(
                product_id=product_id,
                initial_bid_price=initial_bid_price,
                expire_date=expire_date,
                status=ListingStatus.active.value,
            )
            threshold = AuctionThreshold(
                product_id=product_id,
                list_price=to_money(product.list_price),
                make_flag=product.make_flag,
                min_bid=min_bid,
                max_bid=initial_bid_price,
            )
            db.add_all([listing, threshold])
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            "Listed product %s for auction (initial_bid_price=%s, expire_date=%s)",
            product_id,
            initial_bid_price,
            expire_date.isoformat(),
        )
        return self.list_listings(db)

    def list_listings(self, db: Session) -> List[AuctionListing]:
        return (
            db.query(AuctionListing)
            .order_by(AuctionListing.expire_date.desc(), AuctionListing.auction_id.desc())
            .all()
        )

    def get_threshold(self, db: Session, product_id: int) -> AuctionThreshold:
        threshold = db.query(AuctionThreshold).filter(AuctionThreshold.product_id == product_id).one_or_none()
        if threshold is None:
            raise NotFoundError("Product not found in threshold.")
        return threshold

    def remove_listing(self, db: Session, product_id: int) -> None:
        """Withdraw a live listing.

        The listing and threshold rows are deleted; the product's Active bids
        are kept in the ledger as Cancelled.
        """
        now = utcnow()
        try:
            listing = (
                db.query(AuctionListing)
                .filter(AuctionListing.product_id == product_id, AuctionListing.expire_date > now)
                .one_or_none()
            )
            if listing is None:
                raise ValidationError("Product is not currently being auctioned")

            db.delete(listing)
            cancelled = db.execute(
                update(AuctionBid)
                .where(AuctionBid.product_id == product_id, AuctionBid.status == BidStatus.active.value)
                .values(status=BidStatus.cancelled.value)
                .execution_options(synchronize_session=False)
            ).rowcount
            threshold = db.get(AuctionThreshold, product_id)
            if threshold is not None:
                db.delete(threshold)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info("Removed product %s from auction (%s active bids cancelled)", product_id, cancelled)

    # ------------------------------------------------------------------ #
    # bids
    # ------------------------------------------------------------------ #

    def place_bid(
        self,
        db: Session,
        product_id: int,
        customer_id: int,
        bid_amount=None,
    ) -> BidPlacement:
        """Record a bid of ``bid_amount`` on top of the product's current price.

        ``bid_amount`` is an increment, not an absolute price; it defaults to
        the product's MinBid and must lie within [MinBid, MaxBid]. MaxBid is
        compared with the raw increment, never with the cumulative price.
        """
        try:
            listing = (
                db.query(AuctionListing)
                .filter(AuctionListing.product_id == product_id)
                .one_or_none()
            )
            if listing is None:
                raise NotFoundError("Product not found in auction.")

            # Row lock serializes concurrent bids on the same product so the
            # price below is read in the same transaction that writes the bid.
            threshold = (
                db.query(AuctionThreshold)
                .filter(AuctionThreshold.product_id == product_id)
                .with_for_update()
                .one_or_none()
            )
            if threshold is None:
                raise NotFoundError("Product not found in threshold.")

            current_price = self._latest_current_price(db, product_id)
            if current_price is None:
                current_price = threshold.list_price

            # Bounds are checked on the amount as given, before it is rounded
            # to the money scale.
            amount = threshold.min_bid if bid_amount is None else to_decimal(bid_amount)
            if amount < threshold.min_bid:
                raise ValidationError("Bid amount must be greater than or equal to the Minimum Bid.")
            if amount > threshold.max_bid:
                raise ValidationError("Bid amount exceeds maximum allowed.")
            amount = to_money(amount)

            bid = AuctionBid(
                product_id=product_id,
                customer_id=customer_id,
                bid_amount=amount,
                current_price=to_money(to_money(current_price) + amount),
                status=BidStatus.active.value,
                bid_time=utcnow(),
                expire_date=listing.expire_date,
            )
            db.add(bid)
            db.flush()

            demoted = self._demote_superseded_bids(db, bid)
            db.commit()
        except ValidationError as exc:
            db.rollback()
            logger.warning("Rejected bid on product %s by customer %s: %s", product_id, customer_id, exc.message)
            raise
        except Exception:
            db.rollback()
            raise

        db.refresh(bid)
        logger.info(
            "Accepted bid %s on product %s by customer %s (amount=%s, current_price=%s, demoted=%s)",
            bid.bid_id,
            product_id,
            customer_id,
            bid.bid_amount,
            bid.current_price,
            demoted,
        )
        return BidPlacement(bid=bid, bid_log=self.list_bids(db))

    def list_bids(self, db: Session) -> List[AuctionBid]:
        return db.query(AuctionBid).order_by(AuctionBid.bid_time.desc(), AuctionBid.bid_id.desc()).all()

    def list_bid_history(
        self,
        db: Session,
        customer_id: int,
        start_time: datetime,
        end_time: datetime,
        active_only: bool = True,
    ) -> List[AuctionBid]:
        """Bids a customer placed within [start_time, end_time], both ends inclusive."""
        q = db.query(AuctionBid).filter(
            AuctionBid.customer_id == customer_id,
            AuctionBid.bid_time.between(to_naive_utc(start_time), to_naive_utc(end_time)),
        )
        if active_only:
            q = q.filter(AuctionBid.status == BidStatus.active.value)
        return q.order_by(AuctionBid.bid_time.desc(), AuctionBid.bid_id.desc()).all()

    # ------------------------------------------------------------------ #
    # internals
    # ------------------------------------------------------------------ #

    def _latest_current_price(self, db: Session, product_id: int) -> Optional[Decimal]:
        return (
            db.query(AuctionBid.current_price)
            .filter(AuctionBid.product_id == product_id)
            .order_by(AuctionBid.bid_time.desc(), AuctionBid.bid_id.desc())
            .limit(1)
            .scalar()
        )

    def _demote_superseded_bids(self, db: Session, new_bid: AuctionBid) -> int:
        """Keep ``new_bid`` as the only Active bid of its product.

        With AUCTION_LEGACY_GLOBAL_DEMOTION the legacy statement runs instead:
        every bid that is not the highest bid_id of a product with an Active
        listing becomes Inactive, whatever its product or current status.
        """
        if settings.AUCTION_LEGACY_GLOBAL_DEMOTION:
            latest = aliased(AuctionBid)
            keep_ids = (
                select(func.max(latest.bid_id))
                .where(
                    latest.product_id.in_(
                        select(AuctionListing.product_id).where(
                            AuctionListing.status == ListingStatus.active.value
                        )
                    )
                )
                .group_by(latest.product_id)
            )
            stmt = update(AuctionBid).where(
                AuctionBid.bid_id.not_in(keep_ids),
                AuctionBid.status != BidStatus.inactive.value,
            )
        else:
            stmt = update(AuctionBid).where(
                AuctionBid.product_id == new_bid.product_id,
                AuctionBid.status == BidStatus.active.value,
                AuctionBid.bid_id != new_bid.bid_id,
            )

        result = db.execute(
            stmt.values(status=BidStatus.inactive.value).execution_options(synchronize_session=False)
        )
        return result.rowcount


auction_service = AuctionService()
