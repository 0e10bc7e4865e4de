"""Message event handling: filtering, extraction and per-order replies."""
import asyncio

import pytest

from conftest import FakeShopify, FakeSlack
from order_status.errors import BackendQueryError
from order_status.handlers.dispatcher import extract_order_names, handle_message_event
from order_status.handlers.formatter import ERROR_TEXT
from order_status.schemas import SlackMessageEvent


def message(text="status of C#1234 please", **overrides):
    data = {"type": "message", "channel": "C0ORDERS", "user": "U1", "text": text, "ts": "1700000000.000100"}
    data.update(overrides)
    return SlackMessageEvent.model_validate(data)


def dispatch(event, settings, shopify, slack, now=None):
    return asyncio.run(handle_message_event(event, settings, shopify, slack, now=now))


@pytest.mark.parametrize(
    "text, expected",
    [
        ("C#1234", ["C#1234"]),
        ("see C#1234 and C#56789, then C#1234 again", ["C#1234", "C#56789", "C#1234"]),
        ("c#1234 is lower case", []),
        ("C#123 too short, C#123456 too long", []),
        ("(C#4321)", ["C#4321"]),
        ("XC#1234", []),
        ("", []),
    ],
)
def test_extract_order_names(text, expected):
    assert extract_order_names(text) == expected


def test_two_orders_get_two_threaded_replies(settings, make_order, now):
    """Found and not-found orders each get their own reply, in message order."""

    shopify = FakeShopify({"C#1234": make_order(), "C#5678": None})
    slack = FakeSlack()

    posted = dispatch(message("C#5678 and C#1234"), settings, shopify, slack, now=now)

    assert posted == 2
    assert shopify.calls == ["C#5678", "C#1234"]
    first, second = slack.messages
    assert first["text"] == "Couldn't find an order named *C#5678*."
    assert first["blocks"] is None
    assert second["text"] == "C#1234 — summary"
    assert second["blocks"][0]["type"] == "header"
    assert {m["thread_ts"] for m in slack.messages} == {"1700000000.000100"}
    assert {m["channel"] for m in slack.messages} == {"C0ORDERS"}


def test_lookup_error_posts_apology_and_continues(settings, make_order, caplog):
    shopify = FakeShopify({"C#1111": BackendQueryError("bad query"), "C#2222": make_order(name="C#2222")})
    slack = FakeSlack()
    caplog.set_level("ERROR")

    posted = dispatch(message("C#1111 C#2222"), settings, shopify, slack)

    assert posted == 2
    assert slack.messages[0]["text"] == ERROR_TEXT
    assert slack.messages[1]["text"] == "C#2222 — summary"
    assert "C#1111" in caplog.text


def test_failed_apology_is_logged_not_raised(settings, caplog):
    shopify = FakeShopify({"C#1111": BackendQueryError("bad query")})
    slack = FakeSlack(fail_times=2)
    caplog.set_level("ERROR")

    posted = dispatch(message("C#1111"), settings, shopify, slack)

    assert posted == 0
    assert "Could not post error reply for C#1111" in caplog.text


@pytest.mark.parametrize(
    "overrides",
    [
        {"subtype": "message_changed"},
        {"bot_id": "B123"},
        {"text": ""},
        {"text": None},
        {"text": "no order here"},
    ],
)
def test_ignored_messages(settings, make_order, overrides):
    shopify = FakeShopify({"C#1234": make_order()})
    slack = FakeSlack()

    posted = dispatch(message(**overrides), settings, shopify, slack)

    assert posted == 0
    assert shopify.calls == []
    assert slack.messages == []


def test_channel_lock(settings, make_order):
    locked = settings.model_copy(update={"order_channel_id": "C0ORDERS"})
    shopify = FakeShopify({"C#1234": make_order()})
    slack = FakeSlack()

    assert dispatch(message(channel="C0OTHER"), locked, shopify, slack) == 0
    assert dispatch(message(channel="C0ORDERS"), locked, shopify, slack) == 1


def test_reply_to_thread_message_goes_under_thread_parent(settings, make_order):
    """A mention inside a thread is answered in that thread, not a new one."""

    shopify = FakeShopify({"C#1234": make_order(), "C#2222": BackendQueryError("bad query")})
    slack = FakeSlack()

    dispatch(message("C#1234 C#2222", ts="2.2", thread_ts="1.1"), settings, shopify, slack)

    assert [m["thread_ts"] for m in slack.messages] == ["1.1", "1.1"]
