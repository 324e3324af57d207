from __future__ import annotations

from fastapi import FastAPI

from .versionsAPI import router as versions_router, status_snapshot

__all__ = [
    "versions_router",
    "status_snapshot",
    "register",
]

def register(app: FastAPI) -> None:
    app.include_router(versions_router)
