from typing import Iterator, Optional
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.storage.cloudinary import CloudinaryService
from app.user_service.service import UserService
from app.auth_service.service import AuthService, verify_token, INVALID_TOKEN
from app.auth_service.models import CurrentUser
from app.image_service.service import ImageService
from app.image_service.query import ImageQueryService
from app.exceptions import AuthenticationException

bearer_scheme = HTTPBearer(auto_error=False)

def get_db(request: Request) -> Iterator[Session]:
    """Dependency provider for a request-scoped database session"""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

def get_gateway(request: Request) -> CloudinaryService:
    """Dependency provider for the media upload gateway"""
    return request.app.state.gateway

def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)

def get_auth_service(users: UserService = Depends(get_user_service)) -> AuthService:
    return AuthService(users)

def get_image_service(
    db: Session = Depends(get_db),
    gateway: CloudinaryService = Depends(get_gateway),
) -> ImageService:
    return ImageService(db, gateway)

def get_image_query_service(db: Session = Depends(get_db)) -> ImageQueryService:
    return ImageQueryService(db)

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Resolves the bearer token to the caller; runs before any protected handler"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationException(INVALID_TOKEN)
    return verify_token(credentials.credentials)
