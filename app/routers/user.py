from fastapi import APIRouter, Depends

from app.dependencies.dependencies import get_current_user, get_user_service
from app.user_service.service import UserService
from app.user_service.models import CreateUserRequest, UserResponse
from app.auth_service.models import CurrentUser

router = APIRouter(
    prefix="/user",
    tags=["user"]
)

@router.post("/register", response_model=UserResponse, status_code=201)
def register(
    body: CreateUserRequest,
    service: UserService = Depends(get_user_service),
):
    """Creates an account. The password is never echoed back."""
    user = service.create(body.email, body.password)
    return UserResponse.model_validate(user)

@router.get("/profile", response_model=CurrentUser)
def get_profile(user: CurrentUser = Depends(get_current_user)):
    return user
