"""Scheduler API routes."""

from fastapi import APIRouter

from voiceslot.server.routes.calls import router as calls_router
from voiceslot.server.routes.webhooks import router as webhooks_router

router = APIRouter()
router.include_router(calls_router)
router.include_router(webhooks_router)

__all__ = ["router"]
