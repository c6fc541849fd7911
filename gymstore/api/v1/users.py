from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from gymstore.api.deps import get_current_user, require_roles
from gymstore.api.pagination import LimitParam, OffsetParam
from gymstore.db.models.user import User, UserRole
from gymstore.db.session import get_db
from gymstore.schemas.auth import BranchAccountCreateRequest, PasswordChangeRequest
from gymstore.schemas.user import UserResponse
from gymstore.services.auth_service import change_password, create_branch_account

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.post("/me/password", response_model=UserResponse, status_code=status.HTTP_200_OK)
def change_my_password(
    payload: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserResponse:
    user = change_password(payload=payload, user=current_user, db=db)
    return UserResponse.model_validate(user)


@router.get("", response_model=list[UserResponse], status_code=status.HTTP_200_OK)
def list_users(
    _: User = Depends(require_roles(UserRole.ADMIN)),
    limit: LimitParam = 20,
    offset: OffsetParam = 0,
    db: Session = Depends(get_db),
) -> list[UserResponse]:
    users = db.scalars(select(User).order_by(User.id).limit(limit).offset(offset)).all()
    return [UserResponse.model_validate(user) for user in users]


@router.post("/branches", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_branch_user(
    payload: BranchAccountCreateRequest,
    _: User = Depends(require_roles(UserRole.ADMIN)),
    db: Session = Depends(get_db),
) -> UserResponse:
    user = create_branch_account(payload=payload, db=db)
    return UserResponse.model_validate(user)
