from fastapi import APIRouter, Depends

from app.dependencies.dependencies import get_auth_service
from app.auth_service.service import AuthService
from app.auth_service.models import LoginRequest, TokenResponse

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

@router.post("/login", response_model=TokenResponse, status_code=200)
def login(
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Exchanges email and password for a bearer session token."""
    return service.login(body.email, body.password)
