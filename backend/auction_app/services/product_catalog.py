from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from auction_app.models_sqlalchemy.models import Product


class ProductCatalog:
    """Read-only access to the retail catalog the auction is layered on."""

    def get_sellable_product(self, db: Session, product_id: int) -> Optional[Product]:
        """Return the product only while it is commercialized.

        A product is commercialized when neither SellEndDate nor
        DiscontinuedDate is set.
        """
        return (
            db.query(Product)
            .filter(
                Product.product_id == product_id,
                Product.sell_end_date.is_(None),
                Product.discontinued_date.is_(None),
            )
            .one_or_none()
        )


product_catalog = ProductCatalog()
