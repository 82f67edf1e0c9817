"""FastAPI dependency providers for auth, DB sessions, role enforcement and the dispatcher."""

from __future__ import annotations

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db.engine import get_db
from workshop.errors import Unauthorized
from workshop.services.auth import AuthContext, bearer_token, verify_credential
from workshop.services.ws_manager import Dispatcher


async def require_auth(
    authorization: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> AuthContext:
    """Require a valid bearer token. Returns AuthContext."""
    return await verify_credential(bearer_token(authorization), db)


def require_role(*allowed_roles: str):
    """Factory: returns a dependency that enforces role membership."""
    async def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise Unauthorized("Insufficient permissions")
        return auth
    return _check


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher
