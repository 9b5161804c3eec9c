"""Shared pytest fixtures: in-memory cart services, instant gateway and an isolated API client."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import kunapet.utils.logger as checkout_logger
from kunapet.core.carts.models import Cart
from kunapet.core.carts.service import CartService
from kunapet.core.checkout.payments import SimulatedPaymentGateway
from kunapet.core.checkout.service import CheckoutService
from kunapet.dependencies import get_cart_service, get_checkout_service
from kunapet.main import app
from kunapet.storage import models  # noqa: F401
from kunapet.storage.db import Base, get_db


@pytest.fixture()
def cart() -> Cart:
    return Cart(session_id="s-test")


@pytest.fixture()
def gateway() -> SimulatedPaymentGateway:
    """Gateway that approves without waiting."""
    return SimulatedPaymentGateway(delay=0)


@pytest.fixture()
def cart_service() -> CartService:
    return CartService()


@pytest.fixture()
def checkout_service(cart_service: CartService, gateway: SimulatedPaymentGateway) -> CheckoutService:
    return CheckoutService(cart_service, gateway=gateway, retry_initial_delay=0)


@pytest.fixture()
def db_factory():
    """SQLite in-memory database shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def history_file(tmp_path, monkeypatch):
    path = tmp_path / "logs" / "checkout_history.json"
    monkeypatch.setattr(checkout_logger, "LOG_FILE", str(path))
    return path


@pytest.fixture()
def client(cart_service, checkout_service, db_factory, history_file):
    def _get_db():
        db = db_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_cart_service] = lambda: cart_service
    app.dependency_overrides[get_checkout_service] = lambda: checkout_service
    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
