"""Inbound ElevenLabs status webhooks."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from voiceslot.core.logging import get_logger
from voiceslot.daemon.scheduler import CallScheduler
from voiceslot.elevenlabs.fields import WEBHOOK_ID_FIELDS, WEBHOOK_STATUS_FIELDS, pick_truthy
from voiceslot.server.app import get_scheduler

router = APIRouter(prefix="/webhook", tags=["Webhooks"])

_logger = get_logger("server.webhooks")


class WebhookResponse(BaseModel):
    ok: bool = True


@router.post("/elevenlabs", response_model=WebhookResponse)
async def elevenlabs_webhook(
    event: dict[str, Any] = Body(...),
    scheduler: CallScheduler = Depends(get_scheduler),
) -> WebhookResponse:
    """Apply a call status event and trigger a tick.

    Always acknowledges once an identifier is present, whether or not the
    call was being tracked.

    Raises:
        HTTPException: 400 if no call identifier is present.
    """
    raw_id = pick_truthy(event, WEBHOOK_ID_FIELDS)
    if not raw_id:
        raise HTTPException(status_code=400, detail="Missing call identifier")

    status = str(pick_truthy(event, WEBHOOK_STATUS_FIELDS) or "")
    released = scheduler.handle_notification(str(raw_id), status)
    if not released:
        _logger.debug("webhook.untracked_or_non_terminal", call_id=str(raw_id), status=status)

    scheduler.request_tick()
    return WebhookResponse()
