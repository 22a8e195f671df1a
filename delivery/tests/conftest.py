"""Shared test fixtures.

Every test gets a brand-new in-memory SQLite database, so tests never pollute
each other. Services commit for real; there is nothing to roll back.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import delivery.app.models.registry  # noqa: F401
from delivery.app.core.database import Base, get_db
from delivery.app.main import app
from delivery.app.models.cash_register import CashRegisterDay
from delivery.app.models.customer import Customer
from delivery.app.models.inventory import Product
from delivery.app.models.order import Order
from delivery.app.schemas.orders import OrderLineIn
from delivery.app.services import cash_register, customers, inventory, orders

BUSINESS_DATE = date(2024, 6, 1)


# ─── Database ─────────────────────────────────────────────────────────────────


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Callable[[], Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory: Callable[[], Session]) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(db: Session) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the test session."""

    def _override_get_db() -> Generator[Session, None, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ─── Products & customers ─────────────────────────────────────────────────────


@pytest.fixture()
def product_a(db: Session) -> Product:
    """Botijão de gás: cost 10.00, sells at 15.00, 20 in stock."""
    return inventory.create_product(
        db,
        name="Botijão P13",
        description="Gás de cozinha 13kg",
        cost_price=Decimal("10.00"),
        selling_price=Decimal("15.00"),
        stock=20,
    )


@pytest.fixture()
def product_b(db: Session) -> Product:
    return inventory.create_product(
        db,
        name="Água 20L",
        cost_price=Decimal("4.00"),
        selling_price=Decimal("9.00"),
        stock=50,
    )


@pytest.fixture()
def customer(db: Session) -> Customer:
    return customers.create_customer(
        db,
        name="Maria Souza",
        email="maria@example.com",
        phone="11999990000",
        address="Rua das Flores, 10",
    )


# ─── Orders in each state ─────────────────────────────────────────────────────


def make_order(
    db: Session,
    product: Product,
    quantity: int = 2,
    unit_price: Decimal | None = Decimal("15.00"),
    customer: Customer | None = None,
    created_on: date = BUSINESS_DATE,
) -> Order:
    return orders.create_order(
        db,
        [OrderLineIn(product_id=product.id, quantity=quantity, unit_price=unit_price)],
        customer_id=customer.id if customer else None,
        customer_name=None if customer else "Cliente Avulso",
        customer_address=None if customer else "Av. Paulista, 1000",
        created_on=created_on,
    )


@pytest.fixture()
def order_factory(db: Session) -> Callable[..., Order]:
    """`order_factory(product, quantity=2, ...)` creates a pending order."""

    def _make(product: Product, **kwargs: object) -> Order:
        return make_order(db, product, **kwargs)

    return _make


@pytest.fixture()
def pending_order(db: Session, product_a: Product) -> Order:
    return make_order(db, product_a)


@pytest.fixture()
def assigned_order(db: Session, pending_order: Order) -> Order:
    return orders.assign_order(db, pending_order.id, "driver-1")


@pytest.fixture()
def in_progress_order(db: Session, assigned_order: Order) -> Order:
    return orders.start_order(db, assigned_order.id)


@pytest.fixture()
def completed_order(db: Session, in_progress_order: Order) -> Order:
    orders.add_payment(db, in_progress_order.id, "cash", Decimal("30.00"))
    return orders.complete_order(db, in_progress_order.id)


# ─── Cash register ────────────────────────────────────────────────────────────


@pytest.fixture()
def open_register(db: Session) -> CashRegisterDay:
    return cash_register.open_register(db, BUSINESS_DATE, Decimal("100.00"))
