"""ASGI app entrypoint for the order status bot.

This module exposes the FastAPI `app` object, mounts the Slack events
webhook under /slack and includes a minimal healthcheck endpoint used by
orchestration tooling.

Run with: `uvicorn order_status.main:app`
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

import httpx
from pydantic import BaseModel
from fastapi import FastAPI

from .api import webhooks as webhooks_router
from .config import Settings, get_settings
from .integrations.shopify import ShopifyClient
from .integrations.slack import SlackClient
from .logging_utils import configure_logging

logger = logging.getLogger(__name__)


# Pydantic model for the /health response to ensure a stable schema
class HealthResponse(BaseModel):
    status: str = "ok"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Share one HTTP connection pool between the Shopify and Slack clients."""
    settings: Settings = app.state.settings
    shared = not app.state.clients_injected
    http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds) if shared else None
    if http_client is not None:
        app.state.shopify = ShopifyClient(settings, http_client)
        app.state.slack = SlackClient(settings, http_client)

    if settings.order_channel_id:
        logger.info("order-status-checker is running (locked to channel %s)", settings.order_channel_id)
    else:
        logger.info("order-status-checker is running (all channels)")
    try:
        yield
    finally:
        if http_client is not None:
            await http_client.aclose()


def create_app(
    settings: Optional[Settings] = None,
    shopify: Optional[ShopifyClient] = None,
    slack: Optional[SlackClient] = None,
) -> FastAPI:
    """Build the application; clients can be injected for tests."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Order Status Checker", lifespan=lifespan)
    app.state.settings = settings
    app.state.clients_injected = shopify is not None or slack is not None
    app.state.shopify = shopify or ShopifyClient(settings)
    app.state.slack = slack or SlackClient(settings)

    # Slack Events API request URL: <host>/slack/events
    app.include_router(webhooks_router.router, prefix="/slack", tags=["slack"])

    @app.get("/health", response_model=HealthResponse, status_code=200)
    async def health() -> HealthResponse:
        """Return a simple health status in a predictable JSON schema."""
        return HealthResponse()

    return app


app = create_app()
