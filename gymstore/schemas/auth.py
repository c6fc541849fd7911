from pydantic import BaseModel, EmailStr, Field

OTP_PATTERN = r"^\d{6}$"


class AccountCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)


class RegisterRequest(AccountCreateRequest):
    otp: str = Field(pattern=OTP_PATTERN)


class BranchAccountCreateRequest(AccountCreateRequest):
    gym: str = Field(min_length=1, max_length=120)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    otp: str | None = Field(default=None, pattern=OTP_PATTERN)


class OtpRequest(BaseModel):
    email: EmailStr


class OtpSentResponse(BaseModel):
    message: str = "OTP sent to your email"
    expires_in_minutes: int


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=8, max_length=128)
    new_password: str = Field(min_length=8, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
