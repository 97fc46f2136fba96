"""Core data model and configuration."""

from .models import BodyNode, Candidate, OTPResult, PatternTier, RawMessage
from .settings import PickerSettings

__all__ = [
    "BodyNode",
    "Candidate",
    "OTPResult",
    "PatternTier",
    "PickerSettings",
    "RawMessage",
]
