from fastapi import FastAPI

from .deps import get_db, get_acting_user_id, get_access_policy  # re-export for external use
from .tickets import tickets_router


def register_routes(app: FastAPI) -> None:
    app.include_router(tickets_router)

__all__ = [
    "get_db",
    "get_acting_user_id",
    "get_access_policy",
    "tickets_router",
    "register_routes",
]
