"""Slack Web API integration.

Posts threaded replies with `chat.postMessage` using the bot token from
`Settings` (`SLACK_BOT_TOKEN`). Also verifies Events API request signatures.
"""

from typing import Any, Dict, List, Optional
import hashlib
import hmac
import logging
import time

import httpx

from ..config import Settings
from ..errors import SlackAPIError


logger = logging.getLogger(__name__)

SLACK_API_BASE = "https://slack.com/api"

# Requests older than this are rejected as possible replays
SIGNATURE_MAX_AGE_SECONDS = 60 * 5


class SlackClient:
    """Minimal async wrapper around the Slack Web API."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._http = http_client

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.slack_bot_token or ''}",
            "Content-Type": "application/json; charset=utf-8",
        }

    async def _post(self, method: str, payload: Dict[str, Any]) -> httpx.Response:
        url = f"{SLACK_API_BASE}/{method}"
        if self._http is not None:
            return await self._http.post(url, json=payload, headers=self._headers())
        async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
            return await client.post(url, json=payload, headers=self._headers())

    async def post_message(
        self,
        channel: str,
        text: str,
        thread_ts: Optional[str] = None,
        blocks: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        """Post a message, threaded under `thread_ts` when given.

        Returns the decoded Slack response. Raises SlackAPIError when the HTTP
        call fails or Slack answers with `ok: false`.
        """
        if not self.settings.slack_bot_token:
            raise SlackAPIError("Slack bot token is not configured", error_code="not_configured")

        message: Dict[str, Any] = {"channel": channel, "text": text}
        if thread_ts:
            message["thread_ts"] = thread_ts
        if blocks:
            message["blocks"] = blocks

        try:
            resp = await self._post("chat.postMessage", message)
        except httpx.HTTPError as exc:
            raise SlackAPIError(f"Slack request failed: {exc}", original_error=exc) from exc

        if not resp.is_success:
            raise SlackAPIError(f"Slack HTTP {resp.status_code}", status_code=resp.status_code)

        result = resp.json()
        if not result.get("ok"):
            error_code = result.get("error")
            raise SlackAPIError(f"Slack chat.postMessage failed: {error_code}", error_code=error_code)

        logger.debug("Posted message to %s (ts=%s)", channel, result.get("ts"))
        return result


def compute_signature(signing_secret: str, timestamp: str, body: bytes) -> str:
    base = b"v0:" + timestamp.encode() + b":" + body
    digest = hmac.new(signing_secret.encode(), base, hashlib.sha256).hexdigest()
    return f"v0={digest}"


def verify_signature(
    signing_secret: str,
    timestamp: Optional[str],
    signature: Optional[str],
    body: bytes,
    now: Optional[float] = None,
) -> bool:
    """Check an Events API request against the app's signing secret."""
    if not timestamp or not signature:
        return False
    try:
        ts = int(timestamp)
    except ValueError:
        return False
    current = time.time() if now is None else now
    if abs(current - ts) > SIGNATURE_MAX_AGE_SECONDS:
        return False
    expected = compute_signature(signing_secret, timestamp, body)
    return hmac.compare_digest(expected, signature)
