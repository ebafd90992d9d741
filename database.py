"""Database engine construction and session management."""
from decimal import Decimal
from typing import Generator
import logging

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from auth import hash_password
from config import DATABASE_URL, ADMIN_USERNAME, ADMIN_PASSWORD
from models import Base, Product, User, UserRole

logger = logging.getLogger(__name__)


SAMPLE_PRODUCTS = [
    {
        "name": "Chocolate Croissant",
        "description": "Buttery croissant filled with rich chocolate, perfect for breakfast or dessert.",
        "price": Decimal("3.50"),
        "quantity": 25,
        "category": "Pastries",
        "image_url": "https://images.unsplash.com/photo-1555507036-ab1f4038808a?w=400&h=300&fit=crop",
    },
    {
        "name": "Sourdough Bread",
        "description": "Traditional sourdough bread with a crispy crust and tangy flavor.",
        "price": Decimal("4.99"),
        "quantity": 15,
        "category": "Bread",
        "image_url": "https://images.unsplash.com/photo-1586444248902-2f64eddc13df?w=400&h=300&fit=crop",
    },
    {
        "name": "Blueberry Muffin",
        "description": "Moist muffin loaded with fresh blueberries and topped with a sweet crumb.",
        "price": Decimal("2.99"),
        "quantity": 30,
        "category": "Muffins",
        "image_url": "https://images.unsplash.com/photo-1607958996338-0106c4dcd783?w=400&h=300&fit=crop",
    },
    {
        "name": "Cinnamon Roll",
        "description": "Soft, fluffy cinnamon roll with cream cheese frosting and extra cinnamon.",
        "price": Decimal("3.99"),
        "quantity": 20,
        "category": "Pastries",
        "image_url": "https://images.unsplash.com/photo-1558618666-fcd25c85cd64?w=400&h=300&fit=crop",
    },
    {
        "name": "Baguette",
        "description": "Classic French baguette with a crispy exterior and soft, airy interior.",
        "price": Decimal("2.49"),
        "quantity": 18,
        "category": "Bread",
        "image_url": "https://images.unsplash.com/photo-1509440159596-0249088772ff?w=400&h=300&fit=crop",
    },
    {
        "name": "Chocolate Chip Cookie",
        "description": "Large, chewy chocolate chip cookies made with premium dark chocolate.",
        "price": Decimal("1.99"),
        "quantity": 40,
        "category": "Cookies",
        "image_url": "https://images.unsplash.com/photo-1499636136210-6f4ee915583e?w=400&h=300&fit=crop",
    },
    {
        "name": "Apple Pie",
        "description": "Homemade apple pie with flaky crust and sweet-tart apple filling.",
        "price": Decimal("8.99"),
        "quantity": 8,
        "category": "Pies",
        "image_url": "https://images.unsplash.com/photo-1535920527002-b35e3f412d0f?w=400&h=300&fit=crop",
    },
    {
        "name": "Cheesecake",
        "description": "Creamy New York style cheesecake with a graham cracker crust.",
        "price": Decimal("12.99"),
        "quantity": 6,
        "category": "Cakes",
        "image_url": "https://images.unsplash.com/photo-1533134242443-d4fd215305ad?w=400&h=300&fit=crop",
    },
]


def create_db_engine(database_url: str = DATABASE_URL) -> Engine:
    """
    Create the SQLAlchemy engine for a database URL.

    Args:
        database_url: SQLAlchemy database URL

    Returns:
        Configured engine
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        database_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_timeout=30,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create a session factory bound to ``engine``."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for getting a database session.

    The session factory is the one the application was built with.

    Yields:
        Database session
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine, session_factory: sessionmaker, seed: bool = True) -> None:
    """Create tables and seed the catalog and admin account if empty."""
    Base.metadata.create_all(bind=engine)

    if not seed:
        return

    db = session_factory()
    try:
        if db.query(Product).count() == 0:
            db.add_all([Product(**data) for data in SAMPLE_PRODUCTS])
            db.commit()
            logger.info("Seeded database with sample products", extra={
                "product_count": len(SAMPLE_PRODUCTS)
            })

        if db.query(User).filter(User.username == ADMIN_USERNAME).first() is None:
            db.add(User(
                username=ADMIN_USERNAME,
                password_hash=hash_password(ADMIN_PASSWORD),
                role=UserRole.ADMIN.value,
            ))
            db.commit()
            logger.info("Seeded admin account", extra={"username": ADMIN_USERNAME})
    finally:
        db.close()
