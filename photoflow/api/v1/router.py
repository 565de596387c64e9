"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from photoflow.api.v1.health import router as health_router
from photoflow.api.v1.photos import router as photos_router

# Mounted at the root: the frontend calls /photos and /health directly
v1_router = APIRouter()
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(photos_router, tags=["photos"])
