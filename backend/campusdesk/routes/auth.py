"""Staff account endpoints: register, login and the current user."""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session

from .. import models, services
from ..auth import get_current_user
from ..config import settings
from ..database import get_session
from ..resources import user_resource
from ..schemas import LoginIn, RegisterIn, TokenOut
from ..utils.rate_limit import InMemoryRateLimiter
from .common import ok

router = APIRouter(prefix="/auth", tags=["auth"])
login_limiter = InMemoryRateLimiter()


def _enforce_login_rate_limit(request: Request) -> None:
    key = f"{request.client.host if request.client else 'unknown'}:{request.url.path}"
    allowed, retry_after = login_limiter.allow(key, settings.LOGIN_RATE_LIMIT_PER_MIN, 60)
    if not allowed:
        raise HTTPException(
            status_code=429,
            detail=f"rate limit exceeded; retry after {retry_after}s",
            headers={"Retry-After": str(retry_after)},
        )


@router.post('/register', status_code=201)
def register(payload: RegisterIn, db: Session = Depends(get_session)):
    """Create a staff account. Duplicate usernames are rejected with 400."""
    profile = payload.model_dump(exclude={'username', 'password'}, exclude_none=True)
    user = services.AuthService(db).register(payload.username, payload.password, **profile)
    return ok(user_resource(user), 'User registered successfully')


@router.post('/login')
def login(payload: LoginIn, request: Request, db: Session = Depends(get_session)):
    """Authenticate a user and return a short-lived JWT bearer token."""
    _enforce_login_rate_limit(request)
    token = services.AuthService(db).authenticate(payload.username, payload.password)
    if not token:
        raise HTTPException(status_code=401, detail='invalid credentials')
    return ok(TokenOut(access_token=token).model_dump(), 'Login successful')


@router.get('/me')
def me(user: models.User = Depends(get_current_user)):
    return ok(user_resource(user))
