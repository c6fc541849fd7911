import logging
from datetime import UTC, datetime

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymstore.core.security import create_access_token, get_password_hash, verify_password
from gymstore.db.models.user import User, UserRole
from gymstore.schemas.auth import (
    BranchAccountCreateRequest,
    LoginRequest,
    PasswordChangeRequest,
    RegisterRequest,
    TokenResponse,
)
from gymstore.services.otp_service import consume_otp

logger = logging.getLogger(__name__)

EMAIL_TAKEN_DETAIL = "User with this email already exists"
INVALID_CREDENTIALS_DETAIL = "Invalid email or password"
WRONG_PASSWORD_DETAIL = "Current password is incorrect"
SAME_PASSWORD_DETAIL = "New password must differ from the current password"


def _ensure_email_free(db: Session, email: str) -> None:
    if db.scalar(select(User.id).where(User.email == email)) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_TAKEN_DETAIL)


def _create_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    role: UserRole,
    gym: str | None = None,
    email_verified_at: datetime | None = None,
) -> User:
    email = email.lower()
    _ensure_email_free(db, email)

    user = User(
        name=name,
        email=email,
        hashed_password=get_password_hash(password),
        role=role.value,
        gym=gym,
        cart_data={},
        email_verified_at=email_verified_at,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_TAKEN_DETAIL) from None
    db.refresh(user)
    logger.info("user_created user_id=%s role=%s", user.id, user.role)
    return user


def register_user(payload: RegisterRequest, db: Session) -> User:
    email = payload.email.lower()
    _ensure_email_free(db, email)
    consume_otp(db, email, payload.otp)
    return _create_user(
        db,
        payload.name,
        email,
        payload.password,
        UserRole.CUSTOMER,
        email_verified_at=datetime.now(UTC),
    )


def create_branch_account(payload: BranchAccountCreateRequest, db: Session) -> User:
    return _create_user(db, payload.name, payload.email, payload.password, UserRole.BRANCH, gym=payload.gym)


def login_user(payload: LoginRequest, db: Session) -> TokenResponse:
    email = payload.email.lower()
    user = db.scalar(select(User).where(User.email == email))
    if not user or not user.is_active or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS_DETAIL,
        )

    # staff accounts are provisioned by an admin and skip the emailed code
    if user.role == UserRole.CUSTOMER.value:
        consume_otp(db, email, payload.otp)
        if user.email_verified_at is None:
            user.email_verified_at = datetime.now(UTC)
            db.commit()

    token = create_access_token(
        subject=str(user.id),
        extra_claims={"role": user.role, "email": user.email, "gym": user.gym},
    )
    return TokenResponse(access_token=token)


def change_password(payload: PasswordChangeRequest, user: User, db: Session) -> User:
    if not verify_password(payload.current_password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=WRONG_PASSWORD_DETAIL)
    if payload.current_password == payload.new_password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=SAME_PASSWORD_DETAIL)

    user.hashed_password = get_password_hash(payload.new_password)
    user.password_changed_at = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    logger.info("password_changed user_id=%s role=%s", user.id, user.role)
    return user


def ensure_admin_exists(db: Session, email: str, password: str) -> User:
    email = email.lower()
    admin = db.scalar(select(User).where(User.email == email))
    if admin:
        if admin.role != UserRole.ADMIN.value:
            logger.warning("default_admin_email_in_use user_id=%s role=%s", admin.id, admin.role)
        return admin

    admin = User(
        name="Administrator",
        email=email,
        hashed_password=get_password_hash(password),
        role=UserRole.ADMIN.value,
        cart_data={},
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("default_admin_created user_id=%s", admin.id)
    return admin
