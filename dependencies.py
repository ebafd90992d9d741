"""Dependency injection for services."""
from fastapi import Request

from services.auth_service import AuthService
from services.order_service import OrderService
from services.product_service import ProductService


def get_order_service(request: Request) -> OrderService:
    """Get the application's order service."""
    return request.app.state.order_service


def get_product_service() -> ProductService:
    """Get product service instance."""
    return ProductService()


def get_auth_service() -> AuthService:
    """Get auth service instance."""
    return AuthService()
