from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date
from typing import Optional

from screenscore.schemas.common import CamelModel
from screenscore.utils.security import BCRYPT_MAX_BYTES


def ensure_password_length(password: str) -> str:
    """Bcrypt only looks at the first 72 bytes."""
    if len(password.encode('utf-8')) > BCRYPT_MAX_BYTES:
        raise ValueError('Password cannot be longer than 72 bytes')
    return password


# Schema for user signup
class UserSignup(BaseModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=r'^[a-zA-Z0-9_]+$')
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return ensure_password_length(v)


# Schema for user login
class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SessionUser(CamelModel):
    user_id: int
    username: str


class LoginResponse(BaseModel):
    message: str
    user: SessionUser


class SignupResponse(CamelModel):
    message: str
    user_id: int


class SessionStatus(CamelModel):
    is_logged_in: bool
    user: Optional[SessionUser] = None


# Schema for user response
class UserResponse(CamelModel):
    id: int
    username: str
    email: str
    join_date: date


class MessageResponse(BaseModel):
    message: str
