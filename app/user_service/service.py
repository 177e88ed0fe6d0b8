from typing import Optional
import logging
import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.storage.tables import User
from app.settings import settings
from app.exceptions import ConflictException, DatabaseException

log = logging.getLogger(__name__)

# bcrypt only considers the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72

def hash_password(raw_password: str) -> str:
    """Salted bcrypt hash with the configured work factor."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(raw_password.encode("utf-8")[:BCRYPT_MAX_BYTES], salt).decode("utf-8")

def verify_password(raw_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(
            raw_password.encode("utf-8")[:BCRYPT_MAX_BYTES],
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Malformed stored hash
        return False


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def create(self, email: str, raw_password: str) -> User:
        """Registers a new user; the stored credential is the bcrypt hash only."""
        if self.find_one(email) is not None:
            raise ConflictException("User with this email already exists")

        user = User(email=email, password=hash_password(raw_password))
        try:
            with self.db.begin():
                self.db.add(user)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            raise ConflictException("User with this email already exists")
        except SQLAlchemyError as e:
            log.error(f"Creating user failed: {e}")
            raise DatabaseException(f"Failed to create user: {e}")

        log.info("Registered user %s", user.id)
        return user

    def find_one(self, email: str) -> Optional[User]:
        try:
            with self.db.begin():
                return self.db.scalars(select(User).where(User.email == email)).first()
        except SQLAlchemyError as e:
            log.error(f"User lookup failed: {e}")
            raise DatabaseException(f"Failed to look up user: {e}")
