"""Default subscribers for order lifecycle events."""
import logging
from typing import Any, Dict

from sqlalchemy.orm import sessionmaker

from models import Product
from monitoring import units_sold_counter
from services.notifier import ORDER_CREATED, ORDER_STATUS_UPDATED

logger = logging.getLogger(__name__)


class InventorySubscriber:
    """Track units sold and warn when a product runs low after an order."""

    def __init__(self, session_factory: sessionmaker, low_stock_threshold: int):
        self.session_factory = session_factory
        self.low_stock_threshold = low_stock_threshold

    def __call__(self, event_name: str, payload: Dict[str, Any]) -> None:
        if event_name != ORDER_CREATED:
            return

        product_ids = []
        for item in payload["items"]:
            units_sold_counter.add(item["quantity"], {"product_id": item["product_id"]})
            product_ids.append(item["product_id"])

        logger.info("Stock reduced for order", extra={
            "order_id": payload["order_id"],
            "product_ids": product_ids
        })

        db = self.session_factory()
        try:
            low = (
                db.query(Product)
                .filter(Product.id.in_(product_ids))
                .filter(Product.quantity <= self.low_stock_threshold)
                .all()
            )
            for product in low:
                logger.warning("Low stock", extra={
                    "product_id": product.id,
                    "product_name": product.name,
                    "quantity": product.quantity,
                    "threshold": self.low_stock_threshold
                })
        finally:
            db.close()


class NotificationSubscriber:
    """Customer notifications. Delivery is simulated by logging."""

    def __call__(self, event_name: str, payload: Dict[str, Any]) -> None:
        if event_name == ORDER_CREATED:
            logger.info("Sending order confirmation", extra={
                "order_id": payload["order_id"],
                "customer_email": payload["customer_email"],
                "total_amount": str(payload["total_amount"])
            })
        elif event_name == ORDER_STATUS_UPDATED:
            logger.info("Sending order status update", extra={
                "order_id": payload["order_id"],
                "status": payload["new_status"]
            })
