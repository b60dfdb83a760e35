from fastapi import APIRouter

from chatrelay.api.chat import router as chat_router
from chatrelay.api.health import router as health_router
from chatrelay.api.metrics import router as metrics_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(metrics_router)
api_router.include_router(chat_router, prefix="/api")

__all__ = ["api_router"]
