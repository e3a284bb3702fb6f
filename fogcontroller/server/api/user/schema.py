from datetime import datetime
from typing import Optional

from pydantic import field_validator

from fogcontroller.core.common import AppBaseModel


class UserEntry(AppBaseModel):
    """User row as read from the database (password excluded)."""
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    access_token: Optional[str] = None
    created_at: Optional[datetime] = None


class UserCreateRequest(AppBaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        cleaned = value.strip().lower()
        if "@" not in cleaned or cleaned.startswith("@") or cleaned.endswith("@"):
            raise ValueError(f"Invalid email address: {value}")
        return cleaned

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("Password must be at least 8 characters long")
        return value


class UserUpdateRequest(AppBaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: Optional[str] = None
