import os

# Settings are read at import time; point the app at in-memory SQLite first.
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from auction_app.config import settings
from auction_app.main import app
from auction_app.models_sqlalchemy import Base, SessionLocal, engine, get_db
from auction_app.models_sqlalchemy.models import Customer, Product, utcnow


@pytest.fixture()
def db():
    """Fresh schema per test on the shared in-memory engine."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def make_product(db):
    def _make_product(list_price="100.00", make_flag=True, **kwargs):
        product = Product(
            name=kwargs.pop("name", "Test product"),
            list_price=Decimal(str(list_price)),
            make_flag=make_flag,
            sell_start_date=utcnow() - timedelta(days=30),
            **kwargs,
        )
        db.add(product)
        db.commit()
        return product

    return _make_product


@pytest.fixture()
def make_customer(db):
    def _make_customer(name="Test customer"):
        customer = Customer(name=name)
        db.add(customer)
        db.commit()
        return customer

    return _make_customer


@pytest.fixture()
def auction_settings(monkeypatch):
    """Flip auction feature flags for a single test."""

    def _set(**overrides):
        for key, value in overrides.items():
            monkeypatch.setattr(settings, key, value)

    return _set
