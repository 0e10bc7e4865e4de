"""Pydantic schemas for Shopify order records and Slack event payloads."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FulfillmentEvent(BaseModel):
    """One entry of an order's `fulfillments` list."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    status: Optional[str] = None


class OrderRecord(BaseModel):
    """An order as returned by the Admin GraphQL `orders` query.

    Custom attributes arrive as metafield objects (`{"value": ...}` or null)
    and are unwrapped to their raw value here; trimming and case folding are
    left to the normalizer.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    display_fulfillment_status: Optional[str] = Field(default=None, alias="displayFulfillmentStatus")
    fulfillments: List[FulfillmentEvent] = Field(default_factory=list)
    customer_display_name: Optional[str] = Field(default=None, alias="customerDisplayName")

    weeks_since_order: Any = Field(default=None, alias="weeksSinceOrder")
    arrange_status: Any = Field(default=None, alias="arrangeStatus")
    arranged_with: Any = Field(default=None, alias="arrangedWith")
    incoming: Any = None
    reserve_incoming: Any = Field(default=None, alias="reserveIncoming")
    ready_to_contact: Any = Field(default=None, alias="readyToContact")
    needs_follow_up: Any = Field(default=None, alias="needsFollowUp")
    follow_up_notes: Any = Field(default=None, alias="followUpNotes")
    owes_return: Any = Field(default=None, alias="owesReturn")
    return_notes: Any = Field(default=None, alias="returnNotes")
    invoiced_with: Any = Field(default=None, alias="invoicedWith")

    @model_validator(mode="before")
    @classmethod
    def _flatten_customer(cls, data: Any) -> Any:
        if isinstance(data, dict) and "customer" in data:
            data = dict(data)
            customer = data.pop("customer") or {}
            data.setdefault("customerDisplayName", customer.get("displayName"))
        return data

    @field_validator(
        "weeks_since_order",
        "arrange_status",
        "arranged_with",
        "incoming",
        "reserve_incoming",
        "ready_to_contact",
        "needs_follow_up",
        "follow_up_notes",
        "owes_return",
        "return_notes",
        "invoiced_with",
        mode="before",
    )
    @classmethod
    def _unwrap_metafield(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("value")
        return value

    @field_validator("fulfillments", mode="before")
    @classmethod
    def _null_fulfillments(cls, value: Any) -> Any:
        return value or []


class SlackMessageEvent(BaseModel):
    """The inner `event` object of a Slack `message` callback."""

    model_config = ConfigDict(extra="ignore")

    type: str = "message"
    subtype: Optional[str] = None
    channel: Optional[str] = None
    user: Optional[str] = None
    bot_id: Optional[str] = None
    text: Optional[str] = None
    ts: Optional[str] = None
    thread_ts: Optional[str] = None


class SlackEventEnvelope(BaseModel):
    """Outer Events API payload: either a URL verification or an event callback."""

    model_config = ConfigDict(extra="ignore")

    type: str
    token: Optional[str] = None
    challenge: Optional[str] = None
    team_id: Optional[str] = None
    event_id: Optional[str] = None
    event: Optional[dict] = None
