"""Stock validation for incoming orders."""
import logging
from typing import Dict, Iterable, Tuple

from sqlalchemy.orm import Session

from exceptions import InsufficientStock, ProductNotFound
from models import Product
from repositories import ProductRepository, SqlAlchemyProductRepository

logger = logging.getLogger(__name__)


class StockValidator:
    """Read-only check of requested quantities against stock on hand."""

    def validate(self, db: Session, items: Iterable[Tuple[str, int]]) -> Dict[str, Product]:
        """
        Check every requested line before anything is written.

        Quantities for the same product are added up first, so splitting a
        request over several lines cannot exceed stock.

        Args:
            db: Database session
            items: (product_id, quantity) pairs

        Returns:
            Products keyed by id

        Raises:
            ProductNotFound: If any product id is unknown
            InsufficientStock: If any product has too few units
        """
        requested: Dict[str, int] = {}
        for product_id, quantity in items:
            requested[product_id] = requested.get(product_id, 0) + quantity

        products: ProductRepository = SqlAlchemyProductRepository(db)
        found: Dict[str, Product] = {}
        for product_id, quantity in requested.items():
            product = products.find(product_id)
            if product is None:
                logger.info("Order references unknown product", extra={
                    "product_id": product_id
                })
                raise ProductNotFound(product_id)

            if product.quantity < quantity:
                logger.info("Insufficient stock", extra={
                    "product_id": product_id,
                    "requested": quantity,
                    "available": product.quantity
                })
                raise InsufficientStock(product.id, product.name, quantity, product.quantity)

            found[product_id] = product

        return found
