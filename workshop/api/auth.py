"""Auth API: customer registration, login, logout, current user."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db import crud
from workshop.db.engine import get_db
from workshop.dependencies import require_auth
from workshop.errors import NotFound
from workshop.schemas import LoginRequest, RegisterRequest, TokenResponse, UserRead
from workshop.services.auth import (
    AuthContext, authenticate_user, bearer_token, issue_credential, revoke_credential,
)
from workshop.services.bootstrap import create_user

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Self-registration always creates a customer account and signs it in."""
    user = await create_user(
        db, body.username, body.email, body.password,
        role="customer",
        full_name=body.full_name,
        preferred_language=body.preferred_language,
    )
    token = await issue_credential(user, db)
    return TokenResponse(token=token, user=UserRead.model_validate(user))


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await authenticate_user(body.username, body.password, db)
    token = await issue_credential(user, db)
    return TokenResponse(token=token, user=UserRead.model_validate(user))


@router.post("/logout")
async def logout(
    authorization: str | None = Header(default=None),
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    await revoke_credential(bearer_token(authorization), db)
    return {"ok": True}


@router.get("/me", response_model=UserRead)
async def me(
    auth: AuthContext = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    user = await crud.get_user(db, auth.user_id)
    if not user:
        raise NotFound("User not found")
    return user
