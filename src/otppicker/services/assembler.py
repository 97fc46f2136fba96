"""Turn a batch of fetched messages into OTP results, newest first."""

from __future__ import annotations

import asyncio
import datetime as dt
from email.utils import parsedate_to_datetime
from typing import Callable, Iterable, List, Optional

from otppicker.core.models import OTPResult, RawMessage
from otppicker.services.body_decoder import DEFAULT_MAX_DEPTH, decode_body
from otppicker.services.otp_reader import OtpReader
from otppicker.services.sender import extract_email_address
from otppicker.utils.logging import get_logger


logger = get_logger("ResultAssembler")

Clock = Callable[[], dt.datetime]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def parse_date_header(value: Optional[str]) -> Optional[dt.datetime]:
    """Parse an RFC 2822 (or ISO-8601) date header into an aware datetime."""
    if not value or not value.strip():
        return None
    parsed: Optional[dt.datetime]
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None
    if parsed is None:
        try:
            parsed = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


class ResultAssembler:
    """Run decode, extraction and validation over each message and collect the hits."""

    def __init__(
        self,
        reader: Optional[OtpReader] = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        clock: Clock = _utcnow,
    ) -> None:
        self._reader = reader or OtpReader()
        self._max_depth = max_depth
        self._clock = clock

    @classmethod
    def from_settings(cls, settings, *, clock: Clock = _utcnow) -> "ResultAssembler":
        return cls(
            OtpReader(max_body_chars=settings.max_body_chars),
            max_depth=settings.max_depth,
            clock=clock,
        )

    def process(self, message: RawMessage) -> Optional[OTPResult]:
        """Return the result for one message, or None when it holds no code."""
        body = decode_body(message.body, max_depth=self._max_depth)
        code = self._reader.extract(message.subject, body)
        if code is None:
            logger.debug("No code found in message %s", message.id)
            return None

        received_at = parse_date_header(message.date)
        if received_at is None:
            logger.debug("Unusable date header on message %s; using current time", message.id)
            received_at = self._clock()
            if received_at.tzinfo is None:
                received_at = received_at.replace(tzinfo=dt.timezone.utc)

        return OTPResult(
            id=message.id,
            subject=message.subject,
            sender=extract_email_address(message.sender),
            code=code,
            received_at=received_at,
        )

    def _process_isolated(self, message: RawMessage) -> Optional[OTPResult]:
        try:
            return self.process(message)
        except Exception:
            logger.warning("Failed to process message %s; skipping", message.id, exc_info=True)
            return None

    @staticmethod
    def _order(results: Iterable[Optional[OTPResult]]) -> List[OTPResult]:
        found = [result for result in results if result is not None]
        # sorted() is stable under reverse=True, so ties keep input order
        return sorted(found, key=lambda result: result.received_at, reverse=True)

    def assemble(self, messages: Iterable[RawMessage]) -> List[OTPResult]:
        batch = list(messages)
        results = self._order(self._process_isolated(message) for message in batch)
        logger.info("Extracted %d code(s) from %d message(s)", len(results), len(batch))
        return results

    async def assemble_async(self, messages: Iterable[RawMessage]) -> List[OTPResult]:
        """Same as :meth:`assemble`, one worker thread per message."""
        batch = list(messages)
        gathered = await asyncio.gather(
            *(asyncio.to_thread(self._process_isolated, message) for message in batch)
        )
        results = self._order(gathered)
        logger.info("Extracted %d code(s) from %d message(s)", len(results), len(batch))
        return results


def assemble_results(messages: Iterable[RawMessage], *, clock: Clock = _utcnow) -> List[OTPResult]:
    return ResultAssembler(clock=clock).assemble(messages)
