"""Webhook endpoint for the Slack Events API.

Slack expects an answer within a few seconds, so message events are
acknowledged right away and the order lookups run as a background task.
"""

from typing import Any, Dict
import json
import logging

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..handlers import dispatcher
from ..integrations.slack import verify_signature
from ..schemas import SlackEventEnvelope, SlackMessageEvent

logger = logging.getLogger(__name__)

router = APIRouter()


def _ack() -> JSONResponse:
    return JSONResponse({"ok": True})


@router.post("/events")
async def slack_events(request: Request, background_tasks: BackgroundTasks) -> JSONResponse:
    """Receive Events API callbacks.

    Handles the `url_verification` handshake and `message` events; every
    other callback is acknowledged and ignored.
    """
    state = request.app.state
    settings = state.settings
    body = await request.body()

    if not settings.slack_signing_secret:
        logger.error("SLACK_SIGNING_SECRET is not set; rejecting Slack request")
        return JSONResponse({"ok": False, "error": "signing_secret_not_configured"}, status_code=401)

    valid = verify_signature(
        settings.slack_signing_secret,
        request.headers.get("X-Slack-Request-Timestamp"),
        request.headers.get("X-Slack-Signature"),
        body,
    )
    if not valid:
        logger.warning("Rejected Slack request with missing or invalid signature")
        return JSONResponse({"ok": False, "error": "invalid_signature"}, status_code=401)

    try:
        payload: Dict[str, Any] = json.loads(body or b"{}")
        envelope = SlackEventEnvelope.model_validate(payload)
    except (ValueError, ValidationError) as exc:
        logger.warning("Slack event body could not be parsed: %s", exc)
        return JSONResponse({"ok": False, "error": "invalid_payload"}, status_code=400)

    if envelope.type == "url_verification":
        return JSONResponse({"challenge": envelope.challenge})

    if envelope.type != "event_callback" or not envelope.event:
        logger.info("Slack callback type not handled: %s", envelope.type)
        return _ack()

    # Redeliveries would produce duplicate replies in the thread
    retry_num = request.headers.get("X-Slack-Retry-Num")
    if retry_num:
        logger.info(
            "Ignoring Slack retry %s for event %s (%s)",
            retry_num,
            envelope.event_id,
            request.headers.get("X-Slack-Retry-Reason"),
        )
        return _ack()

    if envelope.event.get("type") != "message":
        logger.debug("Slack event type not handled: %s", envelope.event.get("type"))
        return _ack()

    event = SlackMessageEvent.model_validate(envelope.event)
    background_tasks.add_task(
        dispatcher.handle_message_event,
        event,
        settings,
        state.shopify,
        state.slack,
    )
    return _ack()
