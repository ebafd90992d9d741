"""Main application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import (
    API_VERSION,
    DATABASE_URL,
    LOW_STOCK_THRESHOLD,
    PAYMENT_METHOD,
    SEED_DATABASE,
)
from database import create_db_engine, create_session_factory, init_db
from logging_config import setup_logging
from monitoring import init_telemetry
from routers import auth as auth_router, orders, products
from services.notifier import EventNotifier
from services.order_service import OrderService
from services.payment import get_payment_strategy
from services.subscribers import InventorySubscriber, NotificationSubscriber

# Setup structured logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    logger.info("Starting application...")

    init_db(app.state.engine, app.state.session_factory, seed=app.state.seed)

    logger.info("Application startup complete", extra={
        "payment_method": app.state.order_service.payment_strategy.name,
        "subscriber_count": len(app.state.notifier.subscribers)
    })

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.engine.dispose()
    logger.info("Application shutdown complete")


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as ``{"error": message}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render request validation failures as 400 ``{"error": message}``."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"] if part != "body")
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


def create_app(database_url: Optional[str] = None, seed: Optional[bool] = None) -> FastAPI:
    """
    Build the application and everything it depends on.

    The engine, session factory, notifier and order service are created
    here and attached to ``app.state``; nothing is shared between apps.

    Args:
        database_url: Overrides DATABASE_URL
        seed: Overrides SEED_DATABASE

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="Bakery Ordering Service",
        version=API_VERSION,
        lifespan=lifespan
    )

    engine = create_db_engine(database_url or DATABASE_URL)
    session_factory = create_session_factory(engine)

    notifier = EventNotifier()
    notifier.subscribe(InventorySubscriber(session_factory, LOW_STOCK_THRESHOLD))
    notifier.subscribe(NotificationSubscriber())

    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.seed = SEED_DATABASE if seed is None else seed
    app.state.notifier = notifier
    app.state.order_service = OrderService(notifier, get_payment_strategy(PAYMENT_METHOD))

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Instrument FastAPI and SQLAlchemy
    if init_telemetry():
        FastAPIInstrumentor.instrument_app(app)
        SQLAlchemyInstrumentor().instrument(engine=engine)

    # Health check endpoint
    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    app.include_router(auth_router.router)
    app.include_router(products.router)
    app.include_router(orders.router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
