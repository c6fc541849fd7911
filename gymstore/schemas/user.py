from datetime import datetime

from pydantic import BaseModel, EmailStr

from gymstore.db.models.user import UserRole


class UserResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: UserRole
    gym: str | None
    is_active: bool
    password_changed_at: datetime | None = None
    created_at: datetime

    model_config = {"from_attributes": True}
