"""Authentication API router."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from dependencies import get_auth_service
from exceptions import AuthError
from schemas import CredentialsRequest, LoginResponse, RegisterResponse
from services.auth_service import AuthService

router = APIRouter(prefix="/api", tags=["authentication"])


@router.post("/register", response_model=RegisterResponse)
async def register(
    request: CredentialsRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Create a customer account. The name ``admin`` is reserved in any case."""
    try:
        user = auth_service.register(db, request.username, request.password)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return RegisterResponse(success=True, user_id=user.id)


@router.post("/login", response_model=LoginResponse)
async def login(
    request: CredentialsRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Check credentials and return the account's role."""
    try:
        result = auth_service.login(db, request.username, request.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e))

    return LoginResponse(success=True, **result)
