"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from workshop.api.router import api_router
from workshop.config import get_settings
from workshop.db.engine import async_session_factory, create_all
from workshop.errors import WorkshopError
from workshop.services.chat import ChatProtocol
from workshop.services.ws_manager import ConnectionRegistry, Dispatcher

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_all()
    logger.info("Database ready")
    yield


async def _workshop_error_handler(request: Request, exc: WorkshopError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(session_factory=async_session_factory, with_lifespan: bool = True) -> FastAPI:
    """Build the app with its own connection registry and dispatcher."""
    settings = get_settings()
    configure_logging(settings.logging.level)

    app = FastAPI(
        title="Workshop Orders",
        description="Work-order lifecycle engine with real-time chat and notifications.",
        version="0.1.0",
        lifespan=lifespan if with_lifespan else None,
    )

    registry = ConnectionRegistry()
    dispatcher = Dispatcher(registry, send_timeout=settings.realtime.send_timeout_seconds)
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    app.state.session_factory = session_factory
    app.state.chat_protocol = ChatProtocol(dispatcher, session_factory)

    app.add_exception_handler(WorkshopError, _workshop_error_handler)
    app.include_router(api_router)

    @app.get("/health")
    async def health():
        return {"ok": True, "connections": len(registry)}

    return app


app = create_app()
