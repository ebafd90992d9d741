"""Repositories over a SQLAlchemy session.

Each repository is a narrow capability described by a Protocol, with one
SQLAlchemy implementation built from the request's session. Services type
against the protocols.
"""
from typing import Any, Dict, List, Optional, Protocol, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

from models import Order, Product, User


class ProductRepository(Protocol):
    def find(self, product_id: str) -> Optional[Product]: ...

    def find_all(self) -> List[Product]: ...

    def create(self, fields: Dict[str, Any]) -> Product: ...

    def update(self, product: Product, fields: Dict[str, Any]) -> Product: ...

    def delete(self, product: Product) -> None: ...

    def decrement_stock(self, product_id: str, quantity: int) -> bool: ...

    def find_stock(self, product_id: str) -> Optional[Tuple[str, int]]: ...


class OrderRepository(Protocol):
    def find(self, order_id: str) -> Optional[Order]: ...

    def find_all(self) -> List[Order]: ...

    def add(self, order: Order) -> Order: ...


class UserRepository(Protocol):
    def find_by_username(self, username: str) -> Optional[User]: ...

    def create(self, user: User) -> User: ...


class SqlAlchemyProductRepository:
    """Product storage. Callers own the transaction except where noted."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, product_id: str) -> Optional[Product]:
        return self.db.get(Product, product_id)

    def find_all(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.name).all()

    def create(self, fields: Dict[str, Any]) -> Product:
        product = Product(**fields)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def update(self, product: Product, fields: Dict[str, Any]) -> Product:
        for key, value in fields.items():
            setattr(product, key, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self.db.commit()

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """
        Take ``quantity`` units in a single conditional UPDATE.

        Does not commit. Returns False when the product is gone or has fewer
        than ``quantity`` units, in which case nothing changed.
        """
        result = self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.quantity >= quantity)
            .values(quantity=Product.quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def find_stock(self, product_id: str) -> Optional[Tuple[str, int]]:
        """Current (name, quantity) read from the database, bypassing the identity map."""
        row = (
            self.db.query(Product.name, Product.quantity)
            .filter(Product.id == product_id)
            .first()
        )
        return (row.name, row.quantity) if row else None


class SqlAlchemyOrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def find(self, order_id: str) -> Optional[Order]:
        return self.db.get(Order, order_id)

    def find_all(self) -> List[Order]:
        return self.db.query(Order).order_by(Order.created_at.desc()).all()

    def add(self, order: Order) -> Order:
        """Stage an order and its items and flush. Does not commit."""
        self.db.add(order)
        self.db.flush()
        return order


class SqlAlchemyUserRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def create(self, user: User) -> User:
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user
