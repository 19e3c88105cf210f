"""API v1 module."""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, health, swaps

api_router = APIRouter()

# Include routers
api_router.include_router(auth.router)
api_router.include_router(swaps.router)
api_router.include_router(health.router)
