"""Attribute normalization from raw Shopify order nodes."""
from datetime import datetime, timezone

from order_status.handlers.normalize import enum_value, normalize, text_value


def test_missing_fields_become_empty_strings(make_order):
    """Null metafields normalize to empty strings, never to a default like 'NO'."""

    attrs = normalize(make_order())

    assert attrs.weeks_since_order == ""
    assert attrs.arrange_status == ""
    assert attrs.owes_return == ""
    assert attrs.invoiced_with == ""
    assert attrs.fulfilled is False
    assert attrs.fulfilled_at is None


def test_values_are_trimmed_and_enums_canonicalized(make_order):
    """Free text keeps its case; enum labels are upper-cased with underscores."""

    attrs = normalize(
        make_order(
            weeksSinceOrder=" 12.3 ",
            arrangeStatus="Need to arrange",
            needsFollowUp="needs follow-up",
            followUpNotes="  Waiting on supplier quote ",
            reserveIncoming="Reserved Incoming Inventory",
            incoming="  ",
        )
    )

    assert attrs.weeks_since_order == "12.3"
    assert attrs.arrange_status == "NEED_TO_ARRANGE"
    assert attrs.needs_follow_up == "NEEDS_FOLLOW_UP"
    assert attrs.follow_up_notes == "Waiting on supplier quote"
    assert attrs.reserve_incoming == "RESERVED_INCOMING_INVENTORY"
    assert attrs.incoming == ""


def test_numeric_values_are_stringified(make_order):
    attrs = normalize(make_order(weeksSinceOrder=4))

    assert attrs.weeks_since_order == "4"


def test_fulfilled_flag_is_case_insensitive(make_order):
    assert normalize(make_order(displayFulfillmentStatus="fulfilled")).fulfilled is True
    assert normalize(make_order(displayFulfillmentStatus="PARTIALLY_FULFILLED")).fulfilled is False
    assert normalize(make_order(displayFulfillmentStatus=None)).fulfilled is False


def test_most_recent_fulfillment_is_the_latest_timestamp(make_order):
    """Out-of-order fulfillment events still yield the latest date; undated ones are skipped."""

    order = make_order(
        fulfillments=[
            {"createdAt": "2025-10-01T00:00:00Z", "status": "SUCCESS"},
            {"createdAt": "2025-10-20T08:30:00Z", "status": "SUCCESS"},
            {"createdAt": None, "status": "CANCELLED"},
            {"createdAt": "2025-10-05T00:00:00Z", "status": "SUCCESS"},
        ]
    )

    assert normalize(order).fulfilled_at == datetime(2025, 10, 20, 8, 30, tzinfo=timezone.utc)


def test_helpers_handle_none():
    assert text_value(None) == ""
    assert enum_value(None) == ""
    assert enum_value("contact-later") == "CONTACT_LATER"


def test_mixed_naive_and_aware_fulfillment_dates(make_order):
    """Naive timestamps count as UTC instead of breaking the comparison."""

    order = make_order(
        fulfillments=[
            {"createdAt": "2025-10-20T08:30:00", "status": "SUCCESS"},
            {"createdAt": "2025-10-05T00:00:00Z", "status": "SUCCESS"},
        ]
    )

    assert normalize(order).fulfilled_at == datetime(2025, 10, 20, 8, 30, tzinfo=timezone.utc)
