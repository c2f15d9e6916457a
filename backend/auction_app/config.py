from pydantic_settings import BaseSettings
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    DEBUG: bool = False

    # DATABASE_URL must be provided via environment. Production runs on
    # Postgres; SQLite is accepted for local runs and the test-suite.
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")

    # Listing defaults. Discounts are applied to the product list price when
    # no explicit initial bid price is given: purchased goods (MakeFlag=0)
    # open at 75%, manufactured goods (MakeFlag=1) at 50%.
    AUCTION_DEFAULT_DURATION_DAYS: int = 7
    AUCTION_DEFAULT_MIN_BID: float = 0.05
    AUCTION_PURCHASED_DISCOUNT: float = 0.75
    AUCTION_MANUFACTURED_DISCOUNT: float = 0.50

    # When True, accepting a bid runs the legacy table-wide demotion which
    # also rewrites Cancelled/Won/Expired bids of other products to Inactive.
    # Default is to keep only the newest Active bid of the bid's own product.
    AUCTION_LEGACY_GLOBAL_DEMOTION: bool = False

    # The legacy sweep only expires listings whose status is "In Auction",
    # a value listing creation never writes. Setting this flag lets the
    # expiry step match "Active" listings as well.
    AUCTION_EXPIRE_ACTIVE_LISTINGS: bool = False

    # Interval loop that triggers the status sweep from the API process.
    # Disabled by default; the sweep can also be run via POST /api/auction/reconcile
    # or `python -m auction_app.workers.auction_status_worker`.
    RECONCILER_ENABLED: bool = False
    RECONCILER_INTERVAL_SECONDS: int = 60

    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    FRONTEND_URL: Optional[str] = None

    class Config:
        env_file = None
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


_db_url = os.getenv("DATABASE_URL")
if not _db_url:
    raise RuntimeError("DATABASE_URL is required (Postgres, or sqlite:// for local runs).")

settings = Settings()
