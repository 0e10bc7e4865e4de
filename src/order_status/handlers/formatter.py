"""Slack Block Kit rendering for order summaries."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from .analysis import PLACEHOLDER, AnalysisResult, Detail


# Slack rejects section blocks with more than 10 fields
MAX_FIELDS_PER_BLOCK = 10

ERROR_TEXT = "Sorry, I hit an error looking that up."


@dataclass
class MessagePayload:
    text: str
    blocks: List[Dict[str, Any]] = field(default_factory=list)


def chunk_details(details: Iterable[Detail], size: int = MAX_FIELDS_PER_BLOCK) -> List[List[Dict[str, str]]]:
    chunks: List[List[Dict[str, str]]] = []
    current: List[Dict[str, str]] = []
    for detail in details:
        current.append({"type": "mrkdwn", "text": f"*{detail.label}*\n{detail.value or PLACEHOLDER}"})
        if len(current) == size:
            chunks.append(current)
            current = []
    if current:
        chunks.append(current)
    return chunks


def format_message(result: AnalysisResult) -> MessagePayload:
    blocks: List[Dict[str, Any]] = [
        {"type": "header", "text": {"type": "plain_text", "text": result.header_text}},
        {"type": "divider"},
        {"type": "section", "text": {"type": "mrkdwn", "text": "\n".join(result.narrative)}},
    ]

    if result.details:
        blocks.append({"type": "divider"})
        for chunk in chunk_details(result.details):
            blocks.append({"type": "section", "fields": chunk})

    blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": " • ".join(result.footer)}]})

    return MessagePayload(text=f"{result.order_name} — summary", blocks=blocks)


def not_found_message(order_name: str) -> MessagePayload:
    return MessagePayload(text=f"Couldn't find an order named *{order_name}*.")


def error_message() -> MessagePayload:
    return MessagePayload(text=ERROR_TEXT)
