from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Numeric, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from . import Base


def utcnow() -> datetime:
    """Current time as naive UTC, the representation stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ListingStatus(str, enum.Enum):
    active = "Active"
    sold = "Sold"
    expired = "Expired"
    # Legacy sweep matches this literal when expiring unsold listings, but
    # listing creation never writes it.
    in_auction = "In Auction"


class BidStatus(str, enum.Enum):
    active = "Active"
    inactive = "Inactive"
    cancelled = "Cancelled"
    expired = "Expired"
    won = "Won"


MONEY = Numeric(19, 4)


class Product(Base):
    """Catalog product. Owned by the retail catalog; the auction only reads it."""

    __tablename__ = "products"

    product_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    list_price = Column(MONEY, nullable=False)
    # True for manufactured items, False for purchased ones
    make_flag = Column(Boolean, nullable=False, default=True)
    sell_start_date = Column(DateTime, nullable=True, default=utcnow)
    sell_end_date = Column(DateTime, nullable=True)
    discontinued_date = Column(DateTime, nullable=True)


class Customer(Base):
    __tablename__ = "customers"

    customer_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=True)


class AuctionListing(Base):
    """One auction entry per product.

    Removal hard-deletes the row; Sold/Expired are written by the status sweep.
    """

    __tablename__ = "auction_listings"

    auction_id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False, unique=True, index=True)
    initial_bid_price = Column(MONEY, nullable=True)
    expire_date = Column(DateTime, nullable=True, index=True)
    status = Column(String(20), nullable=False, default=ListingStatus.active.value)

    product = relationship("Product")


class AuctionThreshold(Base):
    """Per-product bid bounds plus the pricing snapshot taken at listing time."""

    __tablename__ = "auction_thresholds"

    product_id = Column(Integer, ForeignKey("products.product_id"), primary_key=True)
    list_price = Column(MONEY, nullable=False)
    make_flag = Column(Boolean, nullable=True)
    min_bid = Column(MONEY, nullable=False, default=0.05)
    max_bid = Column(MONEY, nullable=False)


class AuctionBid(Base):
    """Append-only bid ledger. Only ``status`` changes after insert."""

    __tablename__ = "auction_bids"

    bid_id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.customer_id"), nullable=False)
    bid_amount = Column(MONEY, nullable=False)
    current_price = Column(MONEY, nullable=False)
    status = Column(String(20), nullable=False, default=BidStatus.active.value)
    bid_time = Column(DateTime, nullable=False, default=utcnow)
    expire_date = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_auction_bids_product_time", "product_id", "bid_time"),
        Index("idx_auction_bids_customer_time", "customer_id", "bid_time"),
        Index("idx_auction_bids_status", "status"),
    )
