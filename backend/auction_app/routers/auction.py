from __future__ import annotations

from datetime import datetime
from typing import List, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from auction_app.models.auction import (
    AuctionErrorDetail,
    BidCreate,
    BidPlacementResponse,
    BidResponse,
    ListingCreate,
    ListingResponse,
    ReconcileResponse,
    ThresholdResponse,
)
from auction_app.models_sqlalchemy import get_db
from auction_app.services.auction_errors import AuctionError, NotFoundError
from auction_app.services.auction_reconciler import reconcile_statuses
from auction_app.services.auction_service import auction_service


router = APIRouter(prefix="/api/auction", tags=["auction"])


def _raise_http(exc: AuctionError) -> NoReturn:
    status_code = status.HTTP_404_NOT_FOUND if isinstance(exc, NotFoundError) else status.HTTP_400_BAD_REQUEST
    raise HTTPException(
        status_code=status_code,
        detail=AuctionErrorDetail.from_error(exc).model_dump(),
    ) from exc


@router.get("/listings", response_model=List[ListingResponse])
async def list_listings(db: Session = Depends(get_db)):
    """Current listings, latest expiry first."""
    return auction_service.list_listings(db)


@router.post("/listings", response_model=List[ListingResponse], status_code=status.HTTP_201_CREATED)
async def create_listing(payload: ListingCreate, db: Session = Depends(get_db)):
    """Put a product up for auction and return the full listing set."""
    try:
        return auction_service.create_listing(
            db,
            payload.product_id,
            expire_date=payload.expire_date,
            initial_bid_price=payload.initial_bid_price,
        )
    except AuctionError as exc:
        _raise_http(exc)


@router.delete("/listings/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_listing(product_id: int, db: Session = Depends(get_db)) -> Response:
    try:
        auction_service.remove_listing(db, product_id)
    except AuctionError as exc:
        _raise_http(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/thresholds/{product_id}", response_model=ThresholdResponse)
async def get_threshold(product_id: int, db: Session = Depends(get_db)):
    try:
        return auction_service.get_threshold(db, product_id)
    except AuctionError as exc:
        _raise_http(exc)


@router.post("/bids", response_model=BidPlacementResponse, status_code=status.HTTP_201_CREATED)
async def place_bid(payload: BidCreate, db: Session = Depends(get_db)):
    """Place a bid and return it together with the whole bid log (newest first)."""
    try:
        placement = auction_service.place_bid(
            db,
            payload.product_id,
            payload.customer_id,
            bid_amount=payload.bid_amount,
        )
    except AuctionError as exc:
        _raise_http(exc)

    return BidPlacementResponse(
        bid=BidResponse.model_validate(placement.bid),
        bids=[BidResponse.model_validate(b) for b in placement.bid_log],
    )


@router.get("/customers/{customer_id}/bids", response_model=List[BidResponse])
async def list_bid_history(
    customer_id: int,
    start_time: datetime = Query(..., description="Inclusive lower bound on bid time"),
    end_time: datetime = Query(..., description="Inclusive upper bound on bid time"),
    active: bool = Query(True, description="Only return bids whose status is Active"),
    db: Session = Depends(get_db),
):
    return auction_service.list_bid_history(db, customer_id, start_time, end_time, active_only=active)


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile(db: Session = Depends(get_db)):
    """Trigger the auction status sweep now."""
    summary = reconcile_statuses(db)
    return ReconcileResponse(
        listings_sold=summary.listings_sold,
        listings_expired=summary.listings_expired,
        bids_expired=summary.bids_expired,
        bids_won=summary.bids_won,
        timestamp=summary.timestamp,
    )
