"""Flatten a structured message body into plain text."""

from __future__ import annotations

import base64
import binascii
import re
from typing import Optional

from otppicker.core.models import BodyNode
from otppicker.utils.logging import get_logger


logger = get_logger("BodyDecoder")

DEFAULT_MAX_DEPTH = 32

_STYLE_RE = re.compile(r"<style[^>]*>.*?</style>", re.IGNORECASE | re.DOTALL)
_SCRIPT_RE = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")
_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
)


def decode_base64url(data: str) -> str:
    """Decode base64url text to UTF-8, returning ``""`` when it cannot be decoded."""
    if not data:
        return ""
    normalized = data.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        return base64.b64decode(normalized).decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        # UnicodeDecodeError is a ValueError
        logger.debug("Dropping undecodable body leaf: %s", exc)
        return ""


def strip_html(html: str) -> str:
    text = _STYLE_RE.sub("", html)
    text = _SCRIPT_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    for entity, literal in _ENTITIES:
        text = text.replace(entity, literal)
    return _WS_RE.sub(" ", text).strip()


def _base_type(mime_type: Optional[str]) -> str:
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def _decode_leaf(node: BodyNode) -> str:
    text = decode_base64url(node.data or "")
    if _base_type(node.mime_type) == "text/html":
        return strip_html(text)
    return text


def decode_body(node: Optional[BodyNode], *, max_depth: int = DEFAULT_MAX_DEPTH, _depth: int = 0) -> str:
    """Return the visible text of ``node`` and its descendants in document order.

    Inline data on ``node`` comes first, then each child: plain text parts as-is,
    HTML parts stripped to visible text, container parts recursively. Children
    that are neither (attachments, images) contribute nothing.
    """
    if node is None:
        return ""
    if _depth > max_depth:
        logger.debug("Body nesting exceeds %d levels; ignoring deeper parts", max_depth)
        return ""

    chunks = []
    if node.data:
        chunks.append(_decode_leaf(node))

    for part in node.parts:
        kind = _base_type(part.mime_type)
        if kind in ("text/plain", "text/html") and part.data:
            chunks.append(_decode_leaf(part))
        elif part.parts:
            chunks.append(decode_body(part, max_depth=max_depth, _depth=_depth + 1))

    return "".join(chunks)
