"""Catalog management."""
import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from exceptions import ProductNotFound, ValidationError
from models import Product
from repositories import ProductRepository, SqlAlchemyProductRepository

logger = logging.getLogger(__name__)


class ProductService:
    """CRUD over the product catalog."""

    def _repository(self, db: Session) -> ProductRepository:
        return SqlAlchemyProductRepository(db)

    def list_products(self, db: Session) -> List[Product]:
        return self._repository(db).find_all()

    def get_product(self, db: Session, product_id: str) -> Product:
        product = self._repository(db).find(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def create_product(self, db: Session, fields: Dict[str, Any]) -> Product:
        self._check_fields(fields)
        product = self._repository(db).create(fields)
        logger.info("Product created", extra={
            "product_id": product.id,
            "product_name": product.name
        })
        return product

    def update_product(self, db: Session, product_id: str, fields: Dict[str, Any]) -> Product:
        """
        Apply a partial update.

        Args:
            db: Database session
            product_id: Product identifier
            fields: Columns to change; absent columns are left alone

        Raises:
            ProductNotFound: If the product does not exist
            ValidationError: If price or quantity would become negative
        """
        self._check_fields(fields)
        repository = self._repository(db)
        product = repository.find(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        product = repository.update(product, fields)
        logger.info("Product updated", extra={
            "product_id": product_id,
            "fields": sorted(fields)
        })
        return product

    def delete_product(self, db: Session, product_id: str) -> None:
        repository = self._repository(db)
        product = repository.find(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        repository.delete(product)
        logger.info("Product deleted", extra={"product_id": product_id})

    @staticmethod
    def _check_fields(fields: Dict[str, Any]) -> None:
        for required in ("name", "price", "quantity"):
            if required in fields and fields[required] is None:
                raise ValidationError(f"{required.capitalize()} must not be null")
        if fields.get("price") is not None and fields["price"] < 0:
            raise ValidationError("Price must not be negative")
        if fields.get("quantity") is not None and fields["quantity"] < 0:
            raise ValidationError("Quantity must not be negative")
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationError("Name must not be empty")
