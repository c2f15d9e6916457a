from datetime import timedelta
from decimal import Decimal

from auction_app.models_sqlalchemy import SessionLocal
from auction_app.models_sqlalchemy.models import Customer, Product, utcnow


def seed_data():
    """Load a small demo catalog so listings and bids can be tried locally."""
    db = SessionLocal()

    print("Seeding database with demo catalog...")

    if db.query(Product).first() is not None:
        print("Products already present, skipping.")
        db.close()
        return

    now = utcnow()

    products_data = [
        {"name": "HL Road Frame - Black, 58", "list_price": Decimal("1431.50"), "make_flag": True},
        {"name": "Sport-100 Helmet, Red", "list_price": Decimal("34.99"), "make_flag": False},
        {"name": "Mountain Bike Socks, M", "list_price": Decimal("9.50"), "make_flag": False},
        {"name": "Road-150 Red, 62", "list_price": Decimal("3578.27"), "make_flag": True},
        {
            "name": "LL Road Frame - Red, 44",
            "list_price": Decimal("337.22"),
            "make_flag": True,
            "sell_end_date": now - timedelta(days=30),
        },
        {
            "name": "Touring Tire Tube",
            "list_price": Decimal("4.99"),
            "make_flag": False,
            "discontinued_date": now - timedelta(days=90),
        },
    ]

    try:
        for data in products_data:
            db.add(Product(sell_start_date=now - timedelta(days=365), **data))

        for name in ("Jon Yang", "Eugene Huang", "Ruben Torres"):
            db.add(Customer(name=name))

        db.commit()
        print(f"Seeded {len(products_data)} products and 3 customers.")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_data()
