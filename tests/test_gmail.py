from __future__ import annotations

import base64
import datetime as dt
from email.message import EmailMessage

import pytest

from otppicker.core.models import RawMessage
from otppicker.services.assembler import assemble_results
from otppicker.services.body_decoder import decode_body
from otppicker.services.gmail import build_search_query, message_from_gmail, message_from_mime, messages_from_gmail


NOW = dt.datetime(2025, 3, 1, 12, 0, tzinfo=dt.timezone.utc)


def b64url(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii").rstrip("=")


def _make_gmail_resource(
    msg_id: str = "18c2f",
    subject: str = "Your sign-in code",
    sender: str = "Acme Security <no-reply@acme.com>",
    date: str | None = "Sat, 01 Mar 2025 11:58:00 +0000",
) -> dict:
    headers = [{"name": "subject", "value": subject}, {"name": "FROM", "value": sender}]
    if date is not None:
        headers.append({"name": "Date", "value": date})
    return {
        "id": msg_id,
        "threadId": "t1",
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": headers,
            "body": {"size": 0},
            "parts": [
                {"mimeType": "text/plain", "body": {"data": b64url("Your code is 730194")}},
                {"mimeType": "text/html", "body": {"data": b64url("<p>Your code is <b>730194</b></p>")}},
            ],
        },
    }


def test_build_search_query():
    query = build_search_query(["verification code", "OTP"], lookback_minutes=10, now=NOW)
    after = int((NOW - dt.timedelta(minutes=10)).timestamp())
    assert query == f'after:{after} ("verification code" OR "OTP")'


def test_build_search_query_drops_blank_and_quotes():
    query = build_search_query(['  ', 'say "hi"'], lookback_minutes=1, now=NOW)
    after = int((NOW - dt.timedelta(minutes=1)).timestamp())
    assert query == f'after:{after} ("say hi")'
    assert build_search_query([], now=NOW) == f"after:{int((NOW - dt.timedelta(minutes=10)).timestamp())}"


def test_message_from_gmail_headers_case_insensitive():
    message = message_from_gmail(_make_gmail_resource())
    assert isinstance(message, RawMessage)
    assert message.id == "18c2f"
    assert message.subject == "Your sign-in code"
    assert message.sender == "Acme Security <no-reply@acme.com>"
    assert message.date == "Sat, 01 Mar 2025 11:58:00 +0000"
    assert len(message.body.parts) == 2
    assert decode_body(message.body) == "Your code is 730194Your code is 730194"


def test_message_from_gmail_missing_fields():
    message = message_from_gmail({"id": "x"})
    assert message.subject == ""
    assert message.sender == ""
    assert message.date is None
    assert decode_body(message.body) == ""


def test_message_from_gmail_rejects_non_mapping():
    with pytest.raises(TypeError):
        message_from_gmail(["not", "a", "message"])


def test_gmail_resource_end_to_end():
    [result] = assemble_results([message_from_gmail(_make_gmail_resource())])
    assert result.code == "730194"
    assert result.sender == "no-reply@acme.com"
    assert result.received_at == dt.datetime(2025, 3, 1, 11, 58, tzinfo=dt.timezone.utc)


def test_message_from_mime_multipart():
    msg = EmailMessage()
    msg["Subject"] = "ログイン確認"
    msg["From"] = "Shop <shop@example.jp>"
    msg["Date"] = "Sat, 01 Mar 2025 11:00:00 +0900"
    msg.set_content("認証コード：246810")
    msg.add_alternative("<html><body><p>認証コード：<b>246810</b></p></body></html>", subtype="html")
    msg.add_attachment(b"%PDF-1.4 999999", maintype="application", subtype="pdf", filename="x.pdf")

    message = message_from_mime(msg, "imap-42")
    assert message.id == "imap-42"
    assert message.subject == "ログイン確認"
    assert message.sender == "Shop <shop@example.jp>"

    [result] = assemble_results([message])
    assert result.code == "246810"
    assert result.sender == "shop@example.jp"


def test_message_from_mime_rejects_other_types():
    with pytest.raises(TypeError):
        message_from_mime("raw text", "id")


def test_messages_from_gmail_batch():
    resources = [_make_gmail_resource("a"), _make_gmail_resource("b", date=None)]
    assert [m.id for m in messages_from_gmail(resources)] == ["a", "b"]
