"""User schema definitions.

This module defines the User model and request/response models for
authentication endpoints.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

import pytz
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class User(BaseModel):
    """User model with password hash. Never returned to clients directly."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    full_name: str
    email: str
    password_hash: str
    role: str
    school_id: Optional[str] = None
    profile_image: Optional[str] = None
    is_active: bool = True
    last_login: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(pytz.utc).isoformat())


class SchoolSummary(BaseModel):
    school_id: str
    name: str
    domain: str
    address: Optional[str] = None


class UserInfo(BaseModel):
    """Public view of a user, without the password hash."""

    user_id: str
    full_name: str
    email: str
    role: str
    school_id: Optional[str] = None
    school: Optional[SchoolSummary] = None
    profile_image: Optional[str] = None
    is_active: bool
    last_login: Optional[str] = None
    created_at: str


class AuthorInfo(BaseModel):
    """Embedded author view used by quizzes, posts and comments."""

    user_id: str
    full_name: str
    email: str
    role: str
    profile_image: Optional[str] = None


class RegisterRequest(BaseModel):
    full_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Literal["guru", "murid", "masyarakat"]

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Full name is required")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AuthPayload(BaseModel):
    user: UserInfo
    token: str


class UpdateProfileRequest(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    profile_image: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)
