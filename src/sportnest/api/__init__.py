"""HTTP API routers."""

from fastapi import APIRouter

from sportnest.api import users

api_router = APIRouter(prefix="/api")
api_router.include_router(users.router)

__all__ = ["api_router"]
