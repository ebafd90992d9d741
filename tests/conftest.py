"""Shared fixtures: a fresh SQLite file per test and telemetry switched off."""
import os

# Must be set before any application module reads config
os.environ["TELEMETRY_ENABLED"] = "false"
os.environ["SEED_DATABASE"] = "false"

from decimal import Decimal
from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from database import create_db_engine, create_session_factory
from models import Base, Product
from services.notifier import EventNotifier
from services.order_service import OrderService
from services.payment import CashPaymentStrategy


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'bakery.db'}"


@pytest.fixture
def engine(database_url):
    engine = create_db_engine(database_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_product(session_factory):
    """Insert a product in its own session and return its id."""
    def _make(name: str = "Chocolate Croissant", price: str = "3.50", quantity: int = 5,
              category: str = "Pastries") -> str:
        session = session_factory()
        try:
            product = Product(
                name=name,
                description=f"Fresh {name.lower()}",
                price=Decimal(price),
                quantity=quantity,
                category=category,
            )
            session.add(product)
            session.commit()
            return product.id
        finally:
            session.close()

    return _make


@pytest.fixture
def stock_of(session_factory):
    """Read a product's quantity from a fresh session."""
    def _stock(product_id: str):
        session = session_factory()
        try:
            product = session.get(Product, product_id)
            return None if product is None else product.quantity
        finally:
            session.close()

    return _stock


class RecordingSubscriber:
    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def __call__(self, event_name: str, payload: Dict[str, Any]) -> None:
        self.events.append((event_name, payload))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def recorder() -> RecordingSubscriber:
    return RecordingSubscriber()


@pytest.fixture
def notifier(recorder) -> EventNotifier:
    notifier = EventNotifier()
    notifier.subscribe(recorder)
    return notifier


@pytest.fixture
def order_service(notifier) -> OrderService:
    return OrderService(notifier, CashPaymentStrategy())


@pytest.fixture
def app(database_url):
    from main import create_app

    return create_app(database_url=database_url, seed=False)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
