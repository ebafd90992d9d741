"""Order placement and order management."""
import logging
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence

from opentelemetry import trace
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from exceptions import (
    InsufficientStock,
    OrderCommitFailed,
    OrderNotFound,
    PaymentRejected,
    ProductNotFound,
    ValidationError,
)
from models import Order, OrderItem, OrderStatus
from monitoring import (
    order_amount_histogram,
    order_commit_failures_counter,
    order_status_updates_counter,
    orders_created_counter,
    payment_duration_histogram,
    payment_rejections_counter,
    stock_rejections_counter,
)
from repositories import (
    OrderRepository,
    ProductRepository,
    SqlAlchemyOrderRepository,
    SqlAlchemyProductRepository,
)
from services.notifier import EventNotifier, ORDER_CREATED, ORDER_STATUS_UPDATED
from services.payment import PaymentStrategy, Receipt
from services.stock_validator import StockValidator

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Round a number to cents."""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderLine:
    """One requested line. ``price`` is what the client saw; it is advisory."""
    product_id: str
    quantity: int
    price: Optional[Decimal] = None


class OrderService:
    """
    Places orders and manages their status.

    One instance serves the whole application: it holds the active payment
    strategy and the event notifier. Database sessions are passed per call.
    """

    def __init__(
        self,
        notifier: EventNotifier,
        payment_strategy: PaymentStrategy,
        stock_validator: Optional[StockValidator] = None
    ):
        """
        Initialize order service.

        Args:
            notifier: Receives ORDER_CREATED and ORDER_STATUS_UPDATED events
            payment_strategy: Initially active payment strategy
            stock_validator: Stock validator, a default one if omitted
        """
        self.notifier = notifier
        self.payment_strategy = payment_strategy
        self.stock_validator = stock_validator or StockValidator()
        self.tracer = trace.get_tracer(__name__)

    def set_payment_strategy(self, strategy: PaymentStrategy) -> None:
        """Replace the active payment strategy for all later orders."""
        logger.info("Payment strategy changed", extra={
            "previous_method": self.payment_strategy.name,
            "payment_method": strategy.name
        })
        self.payment_strategy = strategy

    async def create_order(
        self,
        db: Session,
        customer_name: str,
        customer_email: str,
        items: Sequence[OrderLine],
        total_amount: Optional[Decimal] = None,
        payment_details: Optional[Dict[str, Any]] = None
    ) -> Order:
        """
        Validate, charge, and commit an order, then publish ORDER_CREATED.

        Unit prices are taken from the catalog and the total is recomputed
        from them. Client-supplied prices and totals are only compared and
        logged.

        Args:
            db: Database session
            customer_name: Customer name
            customer_email: Customer email
            items: Requested lines
            total_amount: Total the client expects to pay
            payment_details: Method-specific payment fields

        Returns:
            The committed order with its items

        Raises:
            ValidationError: If there are no items or a quantity is not positive
            ProductNotFound: If a product id is unknown
            InsufficientStock: If stock is short, before or during commit
            PaymentRejected: If the active strategy refuses the payment
            OrderCommitFailed: If the writes fail after payment
        """
        if not items:
            raise ValidationError("Order must contain at least one item")
        for line in items:
            if line.quantity <= 0:
                raise ValidationError(f"Quantity for product {line.product_id} must be positive")

        span = trace.get_current_span()
        span.set_attribute("order.item_count", len(items))

        # Step 1: validate every line before anything is written
        try:
            products = self.stock_validator.validate(
                db, [(line.product_id, line.quantity) for line in items]
            )
        except (ProductNotFound, InsufficientStock) as e:
            stock_rejections_counter.add(1, {"reason": type(e).__name__})
            raise

        # Step 2: capture prices and recompute the total
        order_items = []
        total = Decimal("0")
        for line in items:
            price = to_money(products[line.product_id].price)
            if line.price is not None and to_money(line.price) != price:
                logger.warning("Client price differs from catalog price", extra={
                    "product_id": line.product_id,
                    "client_price": str(line.price),
                    "catalog_price": str(price)
                })
            order_items.append(OrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                price=price
            ))
            total += price * line.quantity
        total = to_money(total)

        if total_amount is not None and to_money(total_amount) != total:
            logger.warning("Client total differs from computed total", extra={
                "client_total": str(total_amount),
                "computed_total": str(total)
            })

        # Release the connection before calling out to the payment strategy
        db.rollback()

        # Step 3: take payment
        receipt = await self._take_payment(total, payment_details or {})

        # Step 4: write order, items and stock decrements together
        order = Order(
            customer_name=customer_name,
            customer_email=customer_email,
            total_amount=total,
            status=OrderStatus.PENDING.value,
            payment_method=receipt.method,
            payment_transaction_id=receipt.transaction_id,
            items=order_items
        )
        self._commit_order(db, order, receipt)

        orders_created_counter.add(1, {"payment_method": receipt.method})
        order_amount_histogram.record(float(total), {"payment_method": receipt.method})

        logger.info("Order created", extra={
            "order_id": order.id,
            "customer_email": customer_email,
            "amount": str(total),
            "payment_method": receipt.method,
            "payment_transaction_id": receipt.transaction_id,
            "item_count": len(order_items)
        })

        # Step 5: notify subscribers, failures are isolated by the notifier
        self.notifier.notify(ORDER_CREATED, {
            "order_id": order.id,
            "customer_email": order.customer_email,
            "total_amount": order.total_amount,
            "items": [
                {
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "price": item.price
                }
                for item in order.items
            ]
        })

        return order

    async def _take_payment(self, amount: Decimal, details: Dict[str, Any]) -> Receipt:
        strategy = self.payment_strategy
        payment_start = time.time()
        try:
            receipt = await strategy.process_payment(amount, details)
        except PaymentRejected as e:
            payment_rejections_counter.add(1, {"payment_method": strategy.name})
            logger.warning("Payment rejected", extra={
                "payment_method": strategy.name,
                "amount": str(amount),
                "error": str(e)
            })
            raise
        except Exception as e:
            payment_rejections_counter.add(1, {"payment_method": strategy.name})
            logger.error("Payment strategy error", extra={
                "payment_method": strategy.name,
                "amount": str(amount),
                "error": str(e)
            })
            raise PaymentRejected(f"Payment failed: {e}") from e

        payment_duration_histogram.record(
            time.time() - payment_start,
            {"payment_method": strategy.name}
        )

        if not receipt.success:
            payment_rejections_counter.add(1, {"payment_method": strategy.name})
            raise PaymentRejected(f"Payment failed via {strategy.name}")

        return receipt

    def _commit_order(self, db: Session, order: Order, receipt: Receipt) -> None:
        orders: OrderRepository = SqlAlchemyOrderRepository(db)
        products: ProductRepository = SqlAlchemyProductRepository(db)

        with self.tracer.start_as_current_span("db.transaction.create_order") as db_span:
            db_span.set_attribute("db.operation", "INSERT")
            db_span.set_attribute("db.table", "orders")
            db_span.set_attribute("order.total_amount", float(order.total_amount))

            try:
                orders.add(order)

                for item in order.items:
                    if products.decrement_stock(item.product_id, item.quantity):
                        continue

                    stock = products.find_stock(item.product_id)
                    if stock is None:
                        raise OrderCommitFailed(
                            f"Product {item.product_id} disappeared while placing the order",
                            transaction_id=receipt.transaction_id,
                            amount=order.total_amount
                        )
                    name, available = stock
                    raise InsufficientStock(
                        item.product_id, name, item.quantity, available,
                        transaction_id=receipt.transaction_id
                    )

                db.commit()
            except (InsufficientStock, OrderCommitFailed) as e:
                db.rollback()
                self._record_commit_failure(e, receipt, order)
                raise
            except SQLAlchemyError as e:
                db.rollback()
                self._record_commit_failure(e, receipt, order)
                raise OrderCommitFailed(
                    "Failed to record order",
                    transaction_id=receipt.transaction_id,
                    amount=order.total_amount
                ) from e

            db_span.set_attribute("order.id", order.id)

    def _record_commit_failure(self, error: Exception, receipt: Receipt, order: Order) -> None:
        """Payment was taken but nothing was written: log for reconciliation."""
        order_commit_failures_counter.add(1, {
            "reason": type(error).__name__,
            "payment_method": receipt.method
        })
        logger.error("Order not recorded after payment", extra={
            "payment_method": receipt.method,
            "payment_transaction_id": receipt.transaction_id,
            "amount": str(order.total_amount),
            "customer_email": order.customer_email,
            "error": str(error)
        })

    def list_orders(self, db: Session) -> List[Order]:
        """All orders, newest first, with their items."""
        return SqlAlchemyOrderRepository(db).find_all()

    def update_order_status(self, db: Session, order_id: str, status: str) -> Dict[str, str]:
        """
        Set an order's status and publish ORDER_STATUS_UPDATED.

        Any status may follow any other. Setting the current status again
        still publishes an event.

        Raises:
            ValidationError: If ``status`` is not a known status
            OrderNotFound: If the order does not exist
        """
        try:
            new_status = OrderStatus(status).value
        except ValueError:
            raise ValidationError(f"Invalid order status '{status}'") from None

        order = SqlAlchemyOrderRepository(db).find(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        previous_status = order.status
        order.status = new_status
        db.commit()

        order_status_updates_counter.add(1, {"status": new_status})
        logger.info("Order status updated", extra={
            "order_id": order_id,
            "previous_status": previous_status,
            "status": new_status
        })

        self.notifier.notify(ORDER_STATUS_UPDATED, {
            "order_id": order_id,
            "previous_status": previous_status,
            "new_status": new_status
        })

        return {"id": order_id, "status": new_status}
