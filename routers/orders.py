"""Orders API router."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_order_service
from exceptions import (
    InsufficientStock,
    OrderCommitFailed,
    OrderNotFound,
    PaymentRejected,
    ProductNotFound,
    ValidationError,
)
from schemas import (
    OrderCreateRequest,
    OrderResponse,
    OrderStatusResponse,
    OrderStatusUpdate,
    PaymentMethodRequest,
    PaymentMethodResponse,
)
from services.order_service import OrderLine, OrderService
from services.payment import get_payment_strategy

router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/orders", response_model=OrderResponse)
async def create_order(
    request: OrderCreateRequest,
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Place an order: check stock, take payment, record it."""
    try:
        return await order_service.create_order(
            db=db,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            items=[
                OrderLine(product_id=item.product_id, quantity=item.quantity, price=item.price)
                for item in request.items
            ],
            total_amount=request.total_amount,
            payment_details=request.payment_details
        )
    except InsufficientStock as e:
        detail = str(e)
        if e.transaction_id:
            detail = f"{detail}. Payment reference: {e.transaction_id}"
        raise HTTPException(status_code=400, detail=detail)
    except (ValidationError, ProductNotFound, PaymentRejected) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderCommitFailed as e:
        raise HTTPException(
            status_code=500,
            detail=f"{e}. Payment reference: {e.transaction_id}"
        )


@router.get("/orders", response_model=List[OrderResponse])
async def get_orders(
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """All orders, newest first."""
    return order_service.list_orders(db)


@router.put("/orders/{order_id}/status", response_model=OrderStatusResponse)
async def update_order_status(
    request: OrderStatusUpdate,
    order_id: str = Path(..., description="Order ID"),
    db: Session = Depends(get_db),
    order_service: OrderService = Depends(get_order_service)
):
    """Set an order's status."""
    try:
        return order_service.update_order_status(db, order_id, request.status)
    except (OrderNotFound, ValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/payment-method", response_model=PaymentMethodResponse)
async def get_payment_method(order_service: OrderService = Depends(get_order_service)):
    """Name of the active payment strategy."""
    return {"method": order_service.payment_strategy.name}


@router.put("/payment-method", response_model=PaymentMethodResponse)
async def set_payment_method(
    request: PaymentMethodRequest,
    order_service: OrderService = Depends(get_order_service)
):
    """Switch the payment strategy used for all later orders."""
    try:
        strategy = get_payment_strategy(request.method)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    order_service.set_payment_strategy(strategy)
    return {"method": strategy.name}
