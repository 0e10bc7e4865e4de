"""Turn a raw order record into trimmed, comparable attribute values."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import re
from typing import Any, Optional

from ..schemas import OrderRecord


# Enum states as they compare after canonicalization
NEED_TO_ARRANGE = "NEED_TO_ARRANGE"
ARRANGED = "ARRANGED"
INCOMING = "INCOMING"
RESERVED_INCOMING_INVENTORY = "RESERVED_INCOMING_INVENTORY"
READY_TO_CONTACT = "READY_TO_CONTACT"
CONTACT_LATER = "CONTACT_LATER"
NEEDS_FOLLOW_UP = "NEEDS_FOLLOW_UP"
OWES_RETURN = "OWES_RETURN"

FULFILLED = "FULFILLED"

_SEPARATORS = re.compile(r"[\s\-_]+")


@dataclass(frozen=True)
class NormalizedAttributes:
    """Custom order attributes as plain strings; `""` means absent."""

    weeks_since_order: str = ""
    arrange_status: str = ""
    arranged_with: str = ""
    incoming: str = ""
    reserve_incoming: str = ""
    ready_to_contact: str = ""
    needs_follow_up: str = ""
    follow_up_notes: str = ""
    owes_return: str = ""
    return_notes: str = ""
    invoiced_with: str = ""

    fulfilled_at: Optional[datetime] = None
    fulfilled: bool = False


def text_value(raw: Any) -> str:
    """Stringify and trim a raw field value, `""` when missing or blank."""
    if raw is None:
        return ""
    return str(raw).strip()


def enum_value(raw: Any) -> str:
    """Upper-case an enum-bearing value and join its words with underscores.

    `"Needs follow-up"` and `"NEEDS_FOLLOW_UP"` both become `"NEEDS_FOLLOW_UP"`.
    """
    value = text_value(raw)
    if not value:
        return ""
    return _SEPARATORS.sub("_", value.upper()).strip("_")


def as_utc(moment: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    return moment.replace(tzinfo=timezone.utc) if moment.tzinfo is None else moment


def most_recent_fulfillment(record: OrderRecord) -> Optional[datetime]:
    dates = [as_utc(f.created_at) for f in record.fulfillments if f.created_at is not None]
    return max(dates) if dates else None


def is_fulfilled(record: OrderRecord) -> bool:
    return text_value(record.display_fulfillment_status).upper() == FULFILLED


def normalize(record: OrderRecord) -> NormalizedAttributes:
    return NormalizedAttributes(
        weeks_since_order=text_value(record.weeks_since_order),
        arrange_status=enum_value(record.arrange_status),
        arranged_with=text_value(record.arranged_with),
        incoming=enum_value(record.incoming),
        reserve_incoming=enum_value(record.reserve_incoming),
        ready_to_contact=enum_value(record.ready_to_contact),
        needs_follow_up=enum_value(record.needs_follow_up),
        follow_up_notes=text_value(record.follow_up_notes),
        owes_return=enum_value(record.owes_return),
        return_notes=text_value(record.return_notes),
        invoiced_with=text_value(record.invoiced_with),
        fulfilled_at=most_recent_fulfillment(record),
        fulfilled=is_fulfilled(record),
    )
