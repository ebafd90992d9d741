"""Tests for the default order event subscribers."""
import logging
from decimal import Decimal

from services.notifier import ORDER_CREATED, ORDER_STATUS_UPDATED
from services.subscribers import InventorySubscriber, NotificationSubscriber


def created_payload(*lines):
    return {
        "order_id": "order-1",
        "customer_email": "ada@example.com",
        "total_amount": Decimal("7.00"),
        "items": [
            {"product_id": product_id, "quantity": quantity, "price": Decimal("3.50")}
            for product_id, quantity in lines
        ],
    }


def records_with_message(caplog, message):
    return [r for r in caplog.records if r.getMessage() == message]


def test_low_stock_warning_only_for_products_at_or_below_threshold(session_factory, make_product, caplog):
    scarce = make_product("Chocolate Croissant", quantity=2)
    at_threshold = make_product("Apple Pie", quantity=5)
    plenty = make_product("Sourdough Bread", quantity=20)
    subscriber = InventorySubscriber(session_factory, low_stock_threshold=5)

    with caplog.at_level(logging.INFO, logger="services.subscribers"):
        subscriber(ORDER_CREATED, created_payload((scarce, 1), (at_threshold, 1), (plenty, 1)))

    warnings = records_with_message(caplog, "Low stock")
    assert sorted(r.product_id for r in warnings) == sorted([scarce, at_threshold])
    assert all(r.levelno == logging.WARNING for r in warnings)
    assert all(r.threshold == 5 for r in warnings)

    reduced = records_with_message(caplog, "Stock reduced for order")
    assert len(reduced) == 1
    assert reduced[0].order_id == "order-1"


def test_no_low_stock_warning_when_everything_is_plentiful(session_factory, make_product, caplog):
    bread = make_product("Sourdough Bread", quantity=20)
    subscriber = InventorySubscriber(session_factory, low_stock_threshold=5)

    with caplog.at_level(logging.INFO, logger="services.subscribers"):
        subscriber(ORDER_CREATED, created_payload((bread, 3)))

    assert records_with_message(caplog, "Low stock") == []


def test_inventory_subscriber_ignores_status_updates(session_factory, make_product, caplog):
    make_product("Chocolate Croissant", quantity=1)
    subscriber = InventorySubscriber(session_factory, low_stock_threshold=5)

    with caplog.at_level(logging.DEBUG, logger="services.subscribers"):
        subscriber(ORDER_STATUS_UPDATED, {
            "order_id": "order-1",
            "previous_status": "pending",
            "new_status": "completed",
        })

    assert [r for r in caplog.records if r.name == "services.subscribers"] == []


def test_notification_subscriber_sends_confirmation(caplog):
    with caplog.at_level(logging.INFO, logger="services.subscribers"):
        NotificationSubscriber()(ORDER_CREATED, created_payload(("p-1", 2)))

    [record] = records_with_message(caplog, "Sending order confirmation")
    assert record.order_id == "order-1"
    assert record.customer_email == "ada@example.com"
    assert record.total_amount == "7.00"


def test_notification_subscriber_sends_status_notice(caplog):
    with caplog.at_level(logging.INFO, logger="services.subscribers"):
        NotificationSubscriber()(ORDER_STATUS_UPDATED, {
            "order_id": "order-1",
            "previous_status": "pending",
            "new_status": "processing",
        })

    [record] = records_with_message(caplog, "Sending order status update")
    assert record.order_id == "order-1"
    assert record.status == "processing"
    assert records_with_message(caplog, "Sending order confirmation") == []
