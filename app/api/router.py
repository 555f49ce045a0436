"""API router configuration.

Collects the endpoint routers of every feature under one router that
``app.main`` mounts at the versioned API prefix.
"""

from fastapi import APIRouter

from app.api.endpoints import auth, events, groups, health, nutrition, programs, user_profile

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(user_profile.router, prefix="/user-profile", tags=["user-profile"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(programs.router, prefix="/programs", tags=["programs"])
api_router.include_router(nutrition.router, prefix="/nutrition", tags=["nutrition"])
