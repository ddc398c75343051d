"""Staff authentication: registration, login and token issuing."""

from datetime import timedelta
from typing import Optional

import jwt
from passlib.context import CryptContext
from sqlmodel import Session

from .. import models, repositories
from ..config import settings
from ..errors import BusinessRuleError
from .base import log_event, utcnow

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return PWD_CTX.hash(password)


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return PWD_CTX.verify(password, hashed)


class AuthService:
    """Authentication related operations (register + authenticate)."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def register(self, username: str, password: str, **profile) -> models.User:
        """Create a new user with a hashed password.

        Returns the persisted `User` instance. Raises `BusinessRuleError`
        when the username is already taken.
        """
        if self.user_repo.get_by_username(username):
            raise BusinessRuleError('username already exists')
        u = models.User(username=username, password_hash=hash_password(password), **profile)
        u = self.user_repo.create(u)
        log_event("user_registered", user_id=u.id, username=u.username)
        return u

    def authenticate(self, username: str, password: str) -> Optional[str]:
        """Verify credentials and return a signed JWT token on success.

        Returns `None` if authentication fails or the account is inactive.
        """
        user = self.user_repo.get_by_username(username)
        if not user or not verify_password(password, user.password_hash):
            return None
        if user.status != 'active':
            return None
        expire = utcnow() + timedelta(hours=settings.JWT_EXPIRE_HOURS)
        payload = {"user_id": user.id, "username": user.username, "exp": int(expire.timestamp())}
        token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        log_event("user_login", user_id=user.id)
        return token
