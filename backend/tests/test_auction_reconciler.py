from datetime import timedelta
from decimal import Decimal

from auction_app.models_sqlalchemy.models import AuctionBid, AuctionListing, ListingStatus, utcnow
from auction_app.services.auction_reconciler import reconcile_statuses
from auction_app.services.auction_service import auction_service


def _after_expiry():
    return utcnow() + timedelta(days=30)


def _listing(db, product_id):
    return db.query(AuctionListing).filter(AuctionListing.product_id == product_id).one()


def _statuses(db, product_id):
    bids = db.query(AuctionBid).filter(AuctionBid.product_id == product_id).order_by(AuctionBid.bid_id).all()
    return [b.status for b in bids]


def test_highest_standing_bid_sells_the_listing_and_wins(db, make_product, make_customer):
    product = make_product()
    customer = make_customer()
    auction_service.create_listing(db, product.product_id)
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("5"))
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("10"))

    summary = reconcile_statuses(db, now=_after_expiry())

    assert summary.listings_sold == 1
    assert summary.bids_won == 1
    assert _listing(db, product.product_id).status == ListingStatus.sold.value
    assert _statuses(db, product.product_id) == ["Inactive", "Won"]


def test_nothing_changes_before_expiry(db, make_product, make_customer):
    product = make_product()
    customer = make_customer()
    auction_service.create_listing(db, product.product_id)
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("10"))

    summary = reconcile_statuses(db)

    assert summary.changed == 0
    assert _listing(db, product.product_id).status == ListingStatus.active.value
    assert _statuses(db, product.product_id) == ["Active"]


def test_standing_bid_that_is_not_the_largest_amount_is_left_open(db, make_product, make_customer):
    product = make_product()
    customer = make_customer()
    auction_service.create_listing(db, product.product_id)
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("10"))
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("5"))

    summary = reconcile_statuses(db, now=_after_expiry())

    assert summary.changed == 0
    assert _listing(db, product.product_id).status == ListingStatus.active.value
    assert _statuses(db, product.product_id) == ["Inactive", "Active"]


def test_active_listing_without_bids_is_not_expired_by_default(db, make_product):
    product = make_product()
    auction_service.create_listing(db, product.product_id)

    summary = reconcile_statuses(db, now=_after_expiry())

    assert summary.listings_expired == 0
    assert _listing(db, product.product_id).status == ListingStatus.active.value


def test_active_listing_without_bids_expires_when_enabled(db, make_product, auction_settings):
    product = make_product()
    auction_service.create_listing(db, product.product_id)
    auction_settings(AUCTION_EXPIRE_ACTIVE_LISTINGS=True)

    summary = reconcile_statuses(db, now=_after_expiry())

    assert summary.listings_expired == 1
    assert _listing(db, product.product_id).status == ListingStatus.expired.value


def test_in_auction_listing_without_bids_expires(db, make_product):
    product = make_product()
    auction_service.create_listing(db, product.product_id)
    _listing(db, product.product_id).status = ListingStatus.in_auction.value
    db.commit()

    summary = reconcile_statuses(db, now=_after_expiry())

    assert summary.listings_expired == 1
    assert _listing(db, product.product_id).status == ListingStatus.expired.value


def test_listing_with_bids_is_never_expired(db, make_product, make_customer, auction_settings):
    product = make_product()
    customer = make_customer()
    auction_service.create_listing(db, product.product_id)
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("10"))
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("5"))
    auction_settings(AUCTION_EXPIRE_ACTIVE_LISTINGS=True)

    summary = reconcile_statuses(db, now=_after_expiry())

    assert summary.listings_expired == 0
    assert _listing(db, product.product_id).status == ListingStatus.active.value


def test_standing_bid_of_expired_listing_expires(db, make_product, make_customer):
    product = make_product()
    customer = make_customer()
    auction_service.create_listing(db, product.product_id)
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("10"))
    auction_service.place_bid(db, product.product_id, customer.customer_id, Decimal("5"))
    _listing(db, product.product_id).status = ListingStatus.expired.value
    db.commit()

    summary = reconcile_statuses(db, now=_after_expiry())

    assert summary.bids_expired == 1
    assert _statuses(db, product.product_id) == ["Inactive", "Expired"]


def test_second_sweep_is_a_no_op(db, make_product, make_customer, auction_settings):
    sold = make_product(name="sold")
    unsold = make_product(name="unsold")
    open_product = make_product(name="open")
    customer = make_customer()
    auction_settings(AUCTION_EXPIRE_ACTIVE_LISTINGS=True)
    auction_service.create_listing(db, sold.product_id)
    auction_service.create_listing(db, unsold.product_id)
    auction_service.create_listing(db, open_product.product_id, expire_date=utcnow() + timedelta(days=60))
    auction_service.place_bid(db, sold.product_id, customer.customer_id, Decimal("3"))
    auction_service.place_bid(db, open_product.product_id, customer.customer_id, Decimal("3"))
    now = _after_expiry()

    first = reconcile_statuses(db, now=now)
    snapshot = {
        "listings": sorted((listing.product_id, listing.status) for listing in db.query(AuctionListing).all()),
        "bids": sorted((b.bid_id, b.status) for b in db.query(AuctionBid).all()),
    }
    second = reconcile_statuses(db, now=now)

    assert first.changed == 3
    assert second.changed == 0
    assert snapshot == {
        "listings": sorted((listing.product_id, listing.status) for listing in db.query(AuctionListing).all()),
        "bids": sorted((b.bid_id, b.status) for b in db.query(AuctionBid).all()),
    }
