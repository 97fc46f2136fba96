"""Data models shared across the OTP extraction pipeline."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class PatternTier(str, Enum):
    """Precedence class of an extraction pattern."""

    CONTEXTUAL = "contextual"
    FALLBACK = "fallback"


class BodyNode(BaseModel):
    """One node of a message body tree: a leaf with data or a container of parts."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    data: Optional[str] = None
    parts: Tuple[BodyNode, ...] = ()


class RawMessage(BaseModel):
    """A message as fetched by the mail collaborator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    subject: str = ""
    sender: str = Field(default="", alias="from")
    date: Optional[str] = None
    body: BodyNode = Field(default_factory=BodyNode)


class OTPResult(BaseModel):
    """A code found in one message."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    subject: str
    sender: str = Field(alias="from")
    code: str
    received_at: dt.datetime = Field(alias="receivedAt")


@dataclass(frozen=True)
class Candidate:
    """A pattern match awaiting validation.

    ``raw`` is the whole matched substring, ``code`` the captured group that is
    validated and, once accepted, returned as-is.
    """

    raw: str
    code: str
    tier: PatternTier
    pattern_index: int
    position: int
