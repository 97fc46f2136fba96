"""Caller-side adapters that shape provider data into engine input.

Nothing here talks to the network. ``build_search_query`` produces the search
string the fetcher sends to Gmail, and the ``message_from_*`` functions turn
what the fetcher got back into :class:`RawMessage` values.
"""

from __future__ import annotations

import base64
import datetime as dt
from email.header import decode_header, make_header
from email.message import Message
from typing import Any, Dict, Iterable, Mapping, Optional

from otppicker.core.models import BodyNode, RawMessage


def build_search_query(
    keywords: Iterable[str],
    *,
    lookback_minutes: int = 10,
    now: Optional[dt.datetime] = None,
) -> str:
    """Return ``after:<epoch> ("kw1" OR "kw2")`` for the recency window."""
    now = now or dt.datetime.now(dt.timezone.utc)
    after = int((now - dt.timedelta(minutes=lookback_minutes)).timestamp())
    terms = [keyword.replace('"', "").strip() for keyword in keywords]
    quoted = [f'"{term}"' for term in terms if term]
    if not quoted:
        return f"after:{after}"
    return f"after:{after} ({' OR '.join(quoted)})"


def _header(headers: Iterable[Mapping[str, Any]], name: str) -> Optional[str]:
    wanted = name.lower()
    for header in headers:
        if str(header.get("name", "")).lower() == wanted:
            return header.get("value")
    return None


def _gmail_node(payload: Optional[Mapping[str, Any]]) -> BodyNode:
    if not payload:
        return BodyNode()
    body = payload.get("body") or {}
    return BodyNode(
        mime_type=payload.get("mimeType"),
        data=body.get("data"),
        parts=tuple(_gmail_node(part) for part in payload.get("parts") or ()),
    )


def message_from_gmail(resource: Mapping[str, Any]) -> RawMessage:
    """Convert a ``users.messages.get(format="full")`` resource."""
    if not isinstance(resource, Mapping):
        raise TypeError(f"Gmail message resource must be a mapping, got {type(resource).__name__}")
    payload = resource.get("payload") or {}
    headers = payload.get("headers") or []
    return RawMessage(
        id=str(resource.get("id", "")),
        subject=_header(headers, "Subject") or "",
        sender=_header(headers, "From") or "",
        date=_header(headers, "Date"),
        body=_gmail_node(payload),
    )


def _encode(payload: bytes) -> str:
    return base64.urlsafe_b64encode(payload).decode("ascii")


def _mime_node(msg: Message) -> BodyNode:
    if msg.is_multipart():
        parts = msg.get_payload() or []
        return BodyNode(mime_type=msg.get_content_type(), parts=tuple(_mime_node(part) for part in parts))
    if msg.get_content_maintype() != "text":
        return BodyNode(mime_type=msg.get_content_type())
    raw = msg.get_payload(decode=True) or b""
    charset = msg.get_content_charset() or "utf-8"
    try:
        text = raw.decode(charset, errors="replace")
    except LookupError:
        text = raw.decode("utf-8", errors="replace")
    return BodyNode(mime_type=msg.get_content_type(), data=_encode(text.encode("utf-8")))


def _mime_header(msg: Message, name: str) -> Optional[str]:
    value = msg.get(name)
    if value is None:
        return None
    try:
        return str(make_header(decode_header(str(value))))
    except (LookupError, ValueError):
        return str(value)


def message_from_mime(msg: Message, message_id: str) -> RawMessage:
    """Convert a stdlib email message (e.g. parsed from IMAP ``RFC822``)."""
    if not isinstance(msg, Message):
        raise TypeError(f"Expected email.message.Message, got {type(msg).__name__}")
    return RawMessage(
        id=message_id,
        subject=_mime_header(msg, "Subject") or "",
        sender=_mime_header(msg, "From") or "",
        date=_mime_header(msg, "Date"),
        body=_mime_node(msg),
    )


def messages_from_gmail(resources: Iterable[Dict[str, Any]]) -> list[RawMessage]:
    return [message_from_gmail(resource) for resource in resources]
