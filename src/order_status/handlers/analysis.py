"""Order analysis rules.

Maps an order's normalized attributes to a short narrative (one line per
rule that fires) plus the details a teammate needs to act on it. Rules are
independent and evaluated in a fixed order; several can fire for one order.
Details are keyed, and the first rule to ask for a key decides its label.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Tuple

from ..schemas import OrderRecord
from .normalize import (
    ARRANGED,
    CONTACT_LATER,
    INCOMING,
    NEED_TO_ARRANGE,
    NEEDS_FOLLOW_UP,
    OWES_RETURN,
    READY_TO_CONTACT,
    RESERVED_INCOMING_INVENTORY,
    NormalizedAttributes,
    as_utc,
)


PLACEHOLDER = "—"
WEEK_MS = 7 * 24 * 3600 * 1000

NO_EXCEPTIONS_LINE = "ℹ️ No exceptions detected."


@dataclass(frozen=True)
class Detail:
    key: str
    label: str
    value: str


@dataclass(frozen=True)
class AnalysisResult:
    order_name: str
    header_text: str
    narrative: Tuple[str, ...]
    details: Tuple[Detail, ...]
    footer: Tuple[str, ...]


class _Details:
    """Ordered detail list that keeps the first entry per key and skips blanks."""

    def __init__(self) -> None:
        self._items: Dict[str, Detail] = {}

    def add(self, key: str, label: str, value: str) -> None:
        if not value or key in self._items:
            return
        self._items[key] = Detail(key=key, label=label, value=value)

    def as_tuple(self) -> Tuple[Detail, ...]:
        return tuple(self._items.values())


def round_one_decimal(value: float) -> float:
    """Round half away from zero to one decimal place."""
    return float(Decimal(repr(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def weeks_since(moment: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    if moment is None:
        return None
    current = as_utc(now) if now is not None else datetime.now(timezone.utc)
    elapsed_ms = (current - as_utc(moment)).total_seconds() * 1000
    return round_one_decimal(elapsed_ms / WEEK_MS)


def admin_order_url(domain: str, order_id: Optional[str]) -> str:
    """Admin URL for an order GID like `gid://shopify/Order/123`."""
    base = f"https://{domain.rstrip('/')}/admin"
    numeric_id = (order_id or "").split("/")[-1]
    return f"{base}/orders/{numeric_id}" if numeric_id else base


def analyze(
    record: OrderRecord,
    attrs: NormalizedAttributes,
    shop_domain: str,
    now: Optional[datetime] = None,
) -> AnalysisResult:
    name = record.name or PLACEHOLDER
    customer = record.customer_display_name or PLACEHOLDER

    lines: List[str] = []
    details = _Details()
    fulfilled = attrs.fulfilled

    def add_weeks_if_open() -> None:
        if not fulfilled:
            details.add("weeks", "Weeks Since Order", attrs.weeks_since_order)

    # Fulfilled vs not
    if fulfilled:
        weeks = weeks_since(attrs.fulfilled_at, now)
        when = f"{weeks:.1f} weeks ago" if weeks is not None else "(date unavailable)"
        lines.append(f"✅ Fulfilled {when}.")
        details.add("invoice", "Invoiced With", attrs.invoiced_with)
    else:
        age = f"{attrs.weeks_since_order} weeks open" if attrs.weeks_since_order else "age unknown"
        lines.append(f"⏳ Not yet fulfilled ({age}).")

    if attrs.arrange_status == NEED_TO_ARRANGE:
        lines.append("🧩 Not yet arranged with supplier. Check Follow-Up Notes for the reason.")
        details.add("follow_up_notes", "Follow-Up Notes", attrs.follow_up_notes)
        add_weeks_if_open()

    if attrs.arrange_status == ARRANGED and attrs.incoming != INCOMING:
        lines.append("🛠️ Arranged with supplier (not yet incoming).")
        details.add("arranged_with", "Arranged With", attrs.arranged_with)
        add_weeks_if_open()

    if attrs.incoming == INCOMING:
        if attrs.arrange_status == ARRANGED:
            lines.append("📦 Partially incoming: some items are on the way; others still arranged/not invoiced.")
            details.add("follow_up_notes", "Follow-Up Notes", attrs.follow_up_notes)
        else:
            lines.append("📦 Incoming from supplier, pending arrival & final QC.")
        details.add("invoice", "Invoiced With", attrs.invoiced_with)
        add_weeks_if_open()

    if attrs.ready_to_contact == READY_TO_CONTACT:
        lines.append("📞 Ready to contact customer (team should coordinate next steps).")
        details.add("invoice", "Invoiced With", attrs.invoiced_with)
    elif attrs.ready_to_contact == CONTACT_LATER:
        lines.append("⏲️ Contact later: items are here & passed QC, but it's not yet time to contact.")
        details.add("weeks", "Weeks Since Order", attrs.weeks_since_order)
        details.add("invoice", "Invoiced With", attrs.invoiced_with)

    if attrs.needs_follow_up == NEEDS_FOLLOW_UP:
        lines.append("⚠️ Needs follow-up. See details for context.")
        details.add("follow_up_notes", "Follow-Up Notes", attrs.follow_up_notes)

    if attrs.reserve_incoming == RESERVED_INCOMING_INVENTORY:
        lines.append("🏷️ Reserved incoming inventory earmarked for this order.")
        details.add("arranged_with", "Arranged/Reserved With", attrs.arranged_with)

    if attrs.owes_return == OWES_RETURN:
        lines.append("↩️ Customer owes a return.")
        details.add("return_notes", "Return Notes", attrs.return_notes)

    # Unreachable while the fulfillment line is unconditional
    if not lines:
        lines.append(NO_EXCEPTIONS_LINE)

    admin_url = admin_order_url(shop_domain, record.id)

    return AnalysisResult(
        order_name=name,
        header_text=f"{name} — {customer}",
        narrative=tuple(lines),
        details=details.as_tuple(),
        footer=(f"<{admin_url}|Open in Shopify Admin>",),
    )
