"""Sender header normalization."""

from __future__ import annotations

import re


_ANGLE_ADDR = re.compile(r"<([^>]+)>")


def extract_email_address(header: str) -> str:
    """Return the address inside ``Name <addr>``, or the header unchanged."""
    match = _ANGLE_ADDR.search(header or "")
    if match:
        return match.group(1)
    return header
