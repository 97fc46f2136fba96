"""Helpers for extracting one-time passwords from unstructured sources."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from otppicker.core.models import Candidate, PatternTier


@dataclass(frozen=True)
class OtpPattern:
    regex: re.Pattern
    tier: PatternTier
    name: str


def _pattern(expr: str, tier: PatternTier, name: str, flags: int = 0) -> OtpPattern:
    return OtpPattern(re.compile(expr, flags | re.ASCII), tier, name)


_CI = re.IGNORECASE

# Unicode whitespace; re.ASCII narrows \s to ASCII only
_WS = r"\s\u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff"

# Label-adjacent patterns first; the bare six-digit run is the last contextual rule.
CONTEXTUAL_PATTERNS: Sequence[OtpPattern] = (
    _pattern(rf"(?:code|コード|番号)[{_WS}:：は]*([0-9]{{4,8}})", PatternTier.CONTEXTUAL, "code-label", _CI),
    _pattern(rf"([0-9]{{4,8}})[{_WS}]*(?:is your|があなたの)", PatternTier.CONTEXTUAL, "is-your", _CI),
    _pattern(rf"(?:verification|認証|確認)[{_WS}:：]*([0-9]{{4,8}})", PatternTier.CONTEXTUAL, "verification-label", _CI),
    _pattern(rf"OTP[{_WS}:：]*([0-9]{{4,8}})", PatternTier.CONTEXTUAL, "otp-label", _CI),
    _pattern(rf"PIN[{_WS}:：]*([0-9]{{4,8}})", PatternTier.CONTEXTUAL, "pin-label", _CI),
    _pattern(r"\b([0-9]{6})\b", PatternTier.CONTEXTUAL, "six-digits"),
)

FALLBACK_PATTERNS: Sequence[OtpPattern] = (
    _pattern(r"\b([0-9]{4,8})\b", PatternTier.FALLBACK, "digits"),
    _pattern(r"\b([0-9]{3}-[0-9]{3})\b", PatternTier.FALLBACK, "dash-grouped"),
    _pattern(rf"\b([0-9]{{3}}[{_WS}][0-9]{{3}})\b", PatternTier.FALLBACK, "space-grouped"),
    _pattern(r"\b([A-Z]{3}[0-9]{3})\b", PatternTier.FALLBACK, "letters-digits", _CI),
)

EXCLUDE_PATTERNS: Sequence[re.Pattern] = (
    re.compile(r"(?:19|20)[0-9]{2}"),  # years
    re.compile(r"[0-9]{1,2}:[0-9]{2}"),  # times
    re.compile(r"[0-9]{1,2}/[0-9]{1,2}"),  # dates
)

MIN_LENGTH = 4
MAX_LENGTH = 8

_SEPARATORS = re.compile(r"[\s-]")


def normalize_code(code: str) -> str:
    return _SEPARATORS.sub("", code)


def is_valid_code(code: str) -> bool:
    """Accept ``code`` unless its separator-free form has the wrong length or looks like a year/time/date."""
    clean = normalize_code(code)
    if not MIN_LENGTH <= len(clean) <= MAX_LENGTH:
        return False
    return not any(pattern.fullmatch(clean) for pattern in EXCLUDE_PATTERNS)


def iter_candidates(text: str, patterns: Sequence[OtpPattern]) -> Iterator[Candidate]:
    """Yield matches pattern by pattern, each pattern scanned left to right."""
    for index, pattern in enumerate(patterns):
        for match in pattern.regex.finditer(text):
            yield Candidate(
                raw=match.group(0),
                code=match.group(1),
                tier=pattern.tier,
                pattern_index=index,
                position=match.start(1),
            )


def find_candidate(text: str) -> Optional[Candidate]:
    """Return the first valid candidate, exhausting the contextual tier before the fallback tier."""
    for patterns in (CONTEXTUAL_PATTERNS, FALLBACK_PATTERNS):
        for candidate in iter_candidates(text, patterns):
            if is_valid_code(candidate.code):
                return candidate
    return None


class OtpReader:
    """OTP parser that picks the most likely code out of a message subject and body."""

    def __init__(self, *, max_body_chars: Optional[int] = None) -> None:
        self._max_body_chars = max_body_chars

    def extract(self, subject: str, body: str) -> Optional[str]:
        if self._max_body_chars is not None:
            body = body[: self._max_body_chars]
        return self.parse(f"{subject} {body}")

    def parse(self, text: str) -> Optional[str]:
        candidate = find_candidate(text)
        return candidate.code if candidate else None
