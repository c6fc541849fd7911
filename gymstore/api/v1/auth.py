from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gymstore.core.config import settings
from gymstore.db.session import get_db
from gymstore.schemas.auth import LoginRequest, OtpRequest, OtpSentResponse, RegisterRequest, TokenResponse
from gymstore.schemas.user import UserResponse
from gymstore.services.auth_service import login_user, register_user
from gymstore.services.notification_service import EmailSender, get_email_sender
from gymstore.services.otp_service import issue_otp

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/otp", response_model=OtpSentResponse, status_code=status.HTTP_200_OK)
def send_otp(
    payload: OtpRequest,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
) -> OtpSentResponse:
    issue_otp(db=db, email=payload.email, sender=sender)
    return OtpSentResponse(expires_in_minutes=settings.otp_ttl_minutes)


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
) -> UserResponse:
    user = register_user(payload=payload, db=db)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse, status_code=status.HTTP_200_OK)
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
) -> TokenResponse:
    return login_user(payload=payload, db=db)
