from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from workshop.models.user import LANGUAGES, ROLES


def _check_role(value: str | None) -> str | None:
    if value is not None and value not in ROLES:
        raise ValueError(f"role must be one of {', '.join(ROLES)}")
    return value


def _check_language(value: str | None) -> str | None:
    if value is not None and value not in LANGUAGES:
        raise ValueError(f"language must be one of {', '.join(LANGUAGES)}")
    return value


class LoginRequest(BaseModel):
    username: str
    password: str


class RegisterRequest(BaseModel):
    """Customer self-registration. The role is always ``customer``."""

    full_name: str = Field(alias="fullName", min_length=1)
    email: str = Field(min_length=3)
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)
    preferred_language: str = Field(default="en", alias="preferredLanguage")

    model_config = {"populate_by_name": True}

    @field_validator("preferred_language")
    @classmethod
    def valid_language(cls, v):
        return _check_language(v)


class UserCreate(RegisterRequest):
    role: str = "customer"
    specialization: str | None = None

    @field_validator("role")
    @classmethod
    def valid_role(cls, v):
        return _check_role(v)


class UserUpdate(BaseModel):
    full_name: str | None = Field(default=None, alias="fullName")
    email: str | None = None
    role: str | None = None
    preferred_language: str | None = Field(default=None, alias="preferredLanguage")
    specialization: str | None = None
    is_active: bool | None = Field(default=None, alias="isActive")

    model_config = {"populate_by_name": True}

    @field_validator("role")
    @classmethod
    def valid_role(cls, v):
        return _check_role(v)

    @field_validator("preferred_language")
    @classmethod
    def valid_language(cls, v):
        return _check_language(v)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own account."""

    full_name: str | None = Field(default=None, alias="fullName")
    email: str | None = None
    preferred_language: str | None = Field(default=None, alias="preferredLanguage")
    specialization: str | None = None

    model_config = {"populate_by_name": True}

    @field_validator("preferred_language")
    @classmethod
    def valid_language(cls, v):
        return _check_language(v)


class UserRead(BaseModel):
    id: str
    full_name: str
    email: str
    username: str
    role: str
    preferred_language: str
    specialization: str | None = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    token: str
    user: UserRead
