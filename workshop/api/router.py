"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from workshop.api.auth import router as auth_router
from workshop.api.users import router as users_router
from workshop.api.work_orders import router as work_orders_router
from workshop.api.notifications import router as notifications_router
from workshop.api.chat import router as chat_router
from workshop.api.catalog import router as catalog_router
from workshop.api.websocket import router as websocket_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(work_orders_router)
api_router.include_router(notifications_router)
api_router.include_router(chat_router)
api_router.include_router(catalog_router)
api_router.include_router(websocket_router)
