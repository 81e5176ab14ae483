# smartfarm/routers/__init__.py
"""
API route handlers organized by domain.
"""
from .auth import router as auth_router, api_router as auth_api_router
from .plant_batches import router as plant_batches_router
from .irrigation import router as irrigation_router
from .dashboard import router as dashboard_router
from .chat import router as chat_router

__all__ = [
    "auth_router",
    "auth_api_router",
    "plant_batches_router",
    "irrigation_router",
    "dashboard_router",
    "chat_router",
]
