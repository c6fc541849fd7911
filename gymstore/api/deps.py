from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from gymstore.core.config import settings
from gymstore.core.security import decode_access_token, issued_before
from gymstore.db.models.user import User, UserRole
from gymstore.db.session import get_db
from gymstore.services.payments import GatewayResolver, resolve_gateway

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

CREDENTIALS_DETAIL = "Could not validate credentials"


def _user_from_token(token: str, db: Session) -> User:
    unauthorized_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=CREDENTIALS_DETAIL,
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        user_id = int(payload.get("sub", ""))
    except (ValueError, TypeError):
        raise unauthorized_exc

    user = db.scalar(select(User).where(User.id == user_id))
    if not user or not user.is_active:
        raise unauthorized_exc
    # tokens minted before a password change are revoked
    if issued_before(payload, user.password_changed_at):
        raise unauthorized_exc
    return user


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    return _user_from_token(token, db)


def get_optional_user(
    token: str | None = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> User | None:
    if not token:
        return None
    return _user_from_token(token, db)


def require_roles(*roles: UserRole | str) -> Callable[[User], User]:
    allowed_roles = {role.value if isinstance(role, UserRole) else role for role in roles}

    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions",
            )
        return current_user

    return checker


def get_gateway_resolver() -> GatewayResolver:
    return resolve_gateway


def get_request_origin(request: Request) -> str:
    """Pick the storefront origin for checkout redirects.

    The ``Origin`` header is honoured only when it is the configured frontend
    or listed in ``ALLOWED_ORIGINS``; anything else falls back to the frontend.
    """
    frontend = settings.frontend_origin.rstrip("/")
    origin = (request.headers.get("origin") or "").rstrip("/")
    allowed = {frontend, *(item.rstrip("/") for item in settings.allowed_origins)}
    if origin and origin in allowed:
        return origin
    return frontend
