"""Credential checks and signed session tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict
import logging
from jose import jwt, JWTError

from app.user_service.service import UserService, verify_password
from app.storage.tables import User
from app.auth_service.models import CurrentUser, TokenResponse
from app.settings import settings
from app.exceptions import AuthenticationException

log = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Invalid or expired token"


def create_access_token(user: User) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": user.id,
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expire_minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> CurrentUser:
    """Checks signature and expiry, then maps the claims to the caller identity.

    Every failure is reported with the same message.
    """
    try:
        claims: Dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_signature": True, "verify_exp": True},
        )
    except JWTError as e:
        log.info("Rejected session token: %s", e)
        raise AuthenticationException(INVALID_TOKEN)

    user_id = claims.get("sub")
    email = claims.get("email")
    if not user_id or not email:
        raise AuthenticationException(INVALID_TOKEN)
    return CurrentUser(user_id=user_id, email=email)


class AuthService:
    def __init__(self, users: UserService):
        self.users = users

    def validate_user(self, email: str, raw_password: str) -> User:
        user = self.users.find_one(email)
        if user is None or not verify_password(raw_password, user.password):
            raise AuthenticationException(INVALID_CREDENTIALS)
        return user

    def login(self, email: str, raw_password: str) -> TokenResponse:
        user = self.validate_user(email, raw_password)
        log.info("User %s logged in", user.id)
        return TokenResponse(
            access_token=create_access_token(user),
            expires_in=settings.jwt_expire_minutes * 60,
        )
