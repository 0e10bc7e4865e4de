"""Shared fixtures: settings, raw Shopify order nodes and fake integration clients."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from order_status.config import Settings
from order_status.schemas import OrderRecord


NOW = datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def settings() -> Settings:
    """Settings built explicitly so a developer's .env never leaks into tests."""

    return Settings(
        _env_file=None,
        shopify_domain="example.myshopify.com",
        shopify_admin_token="shpat_test",
        shopify_api_version="2025-10",
        slack_bot_token="xoxb-test",
        slack_signing_secret="test-signing-secret",
        order_channel_id=None,
    )


def order_node(**overrides: Any) -> Dict[str, Any]:
    """A GraphQL `orders` node with every metafield null unless overridden.

    Metafield overrides may be given as plain values; they are wrapped into
    `{"value": ...}` like the API returns them.
    """

    node: Dict[str, Any] = {
        "id": "gid://shopify/Order/5551234",
        "name": "C#1234",
        "createdAt": "2025-09-01T10:00:00Z",
        "displayFulfillmentStatus": "UNFULFILLED",
        "fulfillments": [],
        "customer": {"displayName": "Jane Doe"},
    }
    metafields = (
        "weeksSinceOrder", "arrangeStatus", "arrangedWith", "incoming", "reserveIncoming",
        "readyToContact", "needsFollowUp", "followUpNotes", "owesReturn", "returnNotes",
        "invoicedWith",
    )
    for alias in metafields:
        node[alias] = None
    for key, value in overrides.items():
        if key in metafields and value is not None and not isinstance(value, dict):
            value = {"value": value}
        node[key] = value
    return node


@pytest.fixture
def make_order():
    def _make(**overrides: Any) -> OrderRecord:
        return OrderRecord.model_validate(order_node(**overrides))

    return _make


class FakeShopify:
    """Returns canned orders by name; raises when the canned value is an exception."""

    def __init__(self, orders: Optional[Dict[str, Any]] = None):
        self.orders = orders or {}
        self.calls: List[str] = []

    async def fetch_order(self, order_name: str) -> Optional[OrderRecord]:
        self.calls.append(order_name)
        result = self.orders.get(order_name)
        if isinstance(result, Exception):
            raise result
        return result


class FakeSlack:
    """Records every post_message call."""

    def __init__(self, fail_times: int = 0):
        self.messages: List[Dict[str, Any]] = []
        self.fail_times = fail_times

    async def post_message(self, channel, text, thread_ts=None, blocks=None):
        if self.fail_times:
            self.fail_times -= 1
            raise RuntimeError("slack down")
        self.messages.append({"channel": channel, "text": text, "thread_ts": thread_ts, "blocks": blocks})
        return {"ok": True, "ts": f"{len(self.messages)}.000"}
