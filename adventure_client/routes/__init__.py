from __future__ import annotations

from fastapi import APIRouter

from .games import router as games_router
from .meta import router as meta_router
from .play import router as play_router
from .session import router as session_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(meta_router)
api_router.include_router(session_router)
api_router.include_router(games_router)
api_router.include_router(play_router)

__all__ = ["api_router"]
