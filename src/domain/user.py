"""User and session domain models."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.core.config import Constants


_EMAIL_PATTERN = re.compile(r"""^[^@\s'"]+@[^@\s'"]+\.[^@\s'"]+$""")


class Credentials(BaseModel):
    """Email and password submitted to sign up or sign in."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate email shape and normalize it to lowercase."""
        v = v.strip().lower()
        if not _EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email address")
        return v

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """Validate password meets the minimum length."""
        if len(v) < Constants.MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password too short (min {Constants.MIN_PASSWORD_LENGTH} characters)")
        return v


class User(BaseModel):
    """User data transfer object."""

    id: str = Field(..., description="Unique user ID from the store")
    email: str = Field(..., description="Login email, lowercase")


class Session(BaseModel):
    """An authenticated session."""

    user_id: str
    email: str
    access_token: str = Field(..., description="Signed, time-limited token")
    created_at: datetime
