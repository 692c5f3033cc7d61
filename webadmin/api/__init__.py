"""HTTP routes."""

from fastapi import APIRouter

from webadmin.api import admin, auth, health, user

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(user.router, prefix="/user", tags=["user"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
