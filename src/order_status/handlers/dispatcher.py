"""Inbound message handling.

Finds order names in a Slack message and answers each one in the message's
thread, one at a time and in the order they appear. A failed lookup gets a
short apology; it never stops the remaining names or the listener.
"""
from __future__ import annotations

from datetime import datetime
import logging
import re
from typing import List, Optional

from ..config import Settings
from ..integrations.shopify import ShopifyClient
from ..integrations.slack import SlackClient
from ..schemas import SlackMessageEvent
from .analysis import analyze
from .formatter import MessagePayload, error_message, format_message, not_found_message
from .normalize import normalize


logger = logging.getLogger(__name__)

ORDER_PATTERN = re.compile(r"\bC#\d{4,5}\b")


def extract_order_names(text: str) -> List[str]:
    """Order names in left-to-right order, repeats included."""
    return ORDER_PATTERN.findall(text or "")


def should_handle(event: SlackMessageEvent, settings: Settings) -> bool:
    if event.subtype or not event.text or event.bot_id:
        return False
    if settings.order_channel_id and event.channel != settings.order_channel_id:
        return False
    return True


async def build_reply(
    order_name: str,
    settings: Settings,
    shopify: ShopifyClient,
    now: Optional[datetime] = None,
) -> MessagePayload:
    """Run fetch -> normalize -> analyze -> format for a single order name."""
    order = await shopify.fetch_order(order_name)
    if order is None:
        logger.info("Order %s not found", order_name)
        return not_found_message(order_name)

    attrs = normalize(order)
    result = analyze(order, attrs, settings.shopify_domain or "", now=now)
    logger.info("Order %s analyzed: %d line(s), %d detail(s)", order_name, len(result.narrative), len(result.details))
    return format_message(result)


async def handle_message_event(
    event: SlackMessageEvent,
    settings: Settings,
    shopify: ShopifyClient,
    slack: SlackClient,
    now: Optional[datetime] = None,
) -> int:
    """Reply in-thread for every order name in the message.

    Returns the number of replies posted.
    """
    if not should_handle(event, settings):
        return 0

    order_names = extract_order_names(event.text or "")
    if not order_names:
        return 0

    logger.info("Message %s in %s mentions %s", event.ts, event.channel, ", ".join(order_names))

    # Replies to a thread reply go under the thread parent
    thread_ts = event.thread_ts or event.ts

    posted = 0
    for order_name in order_names:
        try:
            reply = await build_reply(order_name, settings, shopify, now=now)
            await slack.post_message(event.channel, reply.text, thread_ts=thread_ts, blocks=reply.blocks or None)
            posted += 1
        except Exception as exc:
            logger.exception("Lookup for %s failed: %s", order_name, exc)
            try:
                apology = error_message()
                await slack.post_message(event.channel, apology.text, thread_ts=thread_ts)
                posted += 1
            except Exception as post_exc:
                logger.error("Could not post error reply for %s: %s", order_name, post_exc)

    return posted
