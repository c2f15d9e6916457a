from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


class ListingCreate(BaseModel):
    product_id: int
    expire_date: Optional[datetime] = Field(
        None, description="Defaults to now + AUCTION_DEFAULT_DURATION_DAYS"
    )
    initial_bid_price: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Defaults to a discount of the list price based on the product MakeFlag",
    )


class ListingResponse(BaseModel):
    auction_id: int
    product_id: int
    initial_bid_price: Optional[Decimal]
    expire_date: Optional[datetime]
    status: str

    class Config:
        from_attributes = True


class ThresholdResponse(BaseModel):
    product_id: int
    list_price: Decimal
    make_flag: Optional[bool]
    min_bid: Decimal
    max_bid: Decimal

    class Config:
        from_attributes = True


class BidCreate(BaseModel):
    product_id: int
    customer_id: int
    bid_amount: Optional[Decimal] = Field(
        None, description="Increment over the current price; defaults to the product's MinBid"
    )


class BidResponse(BaseModel):
    bid_id: int
    product_id: int
    customer_id: int
    bid_amount: Decimal
    current_price: Decimal
    status: str
    bid_time: datetime
    expire_date: Optional[datetime]

    class Config:
        from_attributes = True


class BidPlacementResponse(BaseModel):
    bid: BidResponse
    bids: List[BidResponse]


class ReconcileResponse(BaseModel):
    listings_sold: int
    listings_expired: int
    bids_expired: int
    bids_won: int
    timestamp: datetime


class AuctionErrorDetail(BaseModel):
    message: str
    severity: int
    state: int
    type: str

    @classmethod
    def from_error(cls, exc) -> "AuctionErrorDetail":
        return cls(message=exc.message, severity=exc.severity, state=exc.state, type=type(exc).__name__)
