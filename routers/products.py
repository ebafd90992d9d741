"""Products API router."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path
from opentelemetry import trace
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_product_service
from exceptions import ProductNotFound, ValidationError
from schemas import MessageResponse, ProductCreate, ProductResponse, ProductUpdate
from services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductResponse])
async def get_products(
    db: Session = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Get the whole catalog."""
    products = product_service.list_products(db)

    span = trace.get_current_span()
    span.set_attribute("product.count", len(products))

    return products


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: str = Path(..., description="Product ID"),
    db: Session = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Get a single product."""
    try:
        return product_service.get_product(db, product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=ProductResponse)
async def create_product(
    request: ProductCreate,
    db: Session = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Add a product to the catalog."""
    try:
        return product_service.create_product(db, request.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    request: ProductUpdate,
    product_id: str = Path(..., description="Product ID"),
    db: Session = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Update the fields present in the body."""
    try:
        return product_service.update_product(
            db, product_id, request.model_dump(exclude_unset=True)
        )
    except (ProductNotFound, ValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: str = Path(..., description="Product ID"),
    db: Session = Depends(get_db),
    product_service: ProductService = Depends(get_product_service)
):
    """Remove a product. Past orders keep their line items."""
    try:
        product_service.delete_product(db, product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"message": "Product deleted successfully"}
