"""Users API: admin account management and the caller's own profile."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db import crud
from workshop.db.engine import get_db
from workshop.dependencies import require_auth, require_role
from workshop.errors import NotFound, ValidationError
from workshop.models import User
from workshop.models.user import ROLES
from workshop.schemas import ProfileUpdate, UserCreate, UserRead, UserUpdate
from workshop.services.auth import AuthContext
from workshop.services.bootstrap import create_user

router = APIRouter(prefix="/api/users", tags=["users"])

logger = logging.getLogger(__name__)

_admin_dep = require_role("admin")
_staff_dep = require_role("admin", "supervisor", "sales")


async def _get_or_404(db: AsyncSession, user_id: str) -> User:
    user = await crud.get_user(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def _guard_last_admin(db: AsyncSession, user: User) -> None:
    if user.role != "admin" or not user.is_active:
        return
    admins = await crud.list_users(db, roles=["admin"], active_only=True)
    if len(admins) <= 1:
        raise ValidationError("Cannot remove the last admin")


# ── Own profile ───────────────────────────────────────────

@router.get("/me", response_model=UserRead)
async def get_me(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    return await _get_or_404(db, auth.user_id)


@router.put("/me", response_model=UserRead)
async def update_me(
    body: ProfileUpdate,
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    user = await _get_or_404(db, auth.user_id)
    return await crud.update_user(db, user, **body.model_dump(exclude_unset=True))


# ── Admin management ──────────────────────────────────────

@router.get("", response_model=list[UserRead])
async def list_users(
    role: str | None = None,
    auth: AuthContext = Depends(_staff_dep),
    db: AsyncSession = Depends(get_db),
):
    if role is not None and role not in ROLES:
        raise ValidationError(f"Unknown role: {role}")
    return await crud.list_users(db, roles=[role] if role else None)


@router.post("", response_model=UserRead, status_code=201)
async def add_user(
    body: UserCreate,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    user = await create_user(
        db, body.username, body.email, body.password,
        role=body.role,
        full_name=body.full_name,
        preferred_language=body.preferred_language,
        specialization=body.specialization,
    )
    logger.info("User %s (%s) created by %s", user.username, user.role, auth.username)
    return user


@router.patch("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str,
    body: UserUpdate,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    user = await _get_or_404(db, user_id)
    changes = body.model_dump(exclude_unset=True)
    demoted = "role" in changes and changes["role"] != "admin"
    deactivated = changes.get("is_active") is False
    if deactivated and user.id == auth.user_id:
        raise ValidationError("Cannot deactivate yourself")
    if demoted or deactivated:
        await _guard_last_admin(db, user)
    return await crud.update_user(db, user, **changes)


@router.delete("/{user_id}", response_model=UserRead)
async def deactivate_user(
    user_id: str,
    auth: AuthContext = Depends(_admin_dep),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete: the account stays for history but can no longer sign in."""
    if user_id == auth.user_id:
        raise ValidationError("Cannot deactivate yourself")
    user = await _get_or_404(db, user_id)
    await _guard_last_admin(db, user)
    user = await crud.deactivate_user(db, user)
    logger.info("User %s deactivated by %s", user.username, auth.username)
    return user
