"""API v1 module."""

from fastapi import APIRouter

from app.api.v1 import (
    auth,
    dashboard,
    donations,
    health,
    products,
    stream,
    users,
)

router = APIRouter()

router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(products.router, prefix="/products", tags=["products"])
router.include_router(donations.router, prefix="/donations", tags=["donations"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(stream.router, prefix="/stream", tags=["stream"])
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
