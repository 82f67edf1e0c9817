"""Authentication service: bcrypt passwords and DB-backed bearer tokens."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import get_settings
from workshop.db import crud
from workshop.errors import Unauthenticated
from workshop.models import User


@dataclass
class AuthContext:
    user_id: str
    role: str  # admin | supervisor | engineer | sales | customer
    preferred_language: str
    username: str
    full_name: str

    @classmethod
    def from_user(cls, user: User) -> "AuthContext":
        return cls(
            user_id=user.id,
            role=user.role,
            preferred_language=user.preferred_language,
            username=user.username,
            full_name=user.full_name,
        )


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def _hash_token(token: str) -> str:
    """SHA-256 hash of a bearer token for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def authenticate_user(username: str, password: str, db: AsyncSession) -> User:
    """Check username/password. Inactive users cannot log in."""
    user = await crud.get_user_by_username(db, username)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise Unauthenticated("Invalid username or password")
    return user


async def issue_credential(user: User, db: AsyncSession) -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    max_age = get_settings().auth.session_max_age_days
    expires_at = datetime.now(timezone.utc) + timedelta(days=max_age)
    await crud.create_user_session(db, user.id, _hash_token(token), expires_at)
    return token


async def verify_credential(token: str, db: AsyncSession) -> AuthContext:
    """Look up a session by token hash and return who it belongs to."""
    if not token:
        raise Unauthenticated("Token required")

    session = await crud.get_live_session_by_token_hash(db, _hash_token(token))
    if not session:
        raise Unauthenticated("Invalid or expired token")

    user = await crud.get_user(db, session.user_id)
    if not user or not user.is_active:
        raise Unauthenticated("Invalid or expired token")
    return AuthContext.from_user(user)


async def revoke_credential(token: str, db: AsyncSession) -> None:
    await crud.delete_session_by_token_hash(db, _hash_token(token))


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return ""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()
