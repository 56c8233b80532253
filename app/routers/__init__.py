"""API routers."""

from app.routers.account_activations import router as account_activations_router
from app.routers.auth import router as auth_router
from app.routers.microposts import router as microposts_router
from app.routers.password_resets import router as password_resets_router
from app.routers.users import router as users_router

__all__ = [
    "auth_router",
    "users_router",
    "account_activations_router",
    "password_resets_router",
    "microposts_router",
]
