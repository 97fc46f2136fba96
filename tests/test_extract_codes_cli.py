from __future__ import annotations

import base64
import datetime as dt
import importlib.util
import json
from pathlib import Path

import pytest


SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "extract_codes.py"


@pytest.fixture(scope="module")
def cli():
    spec = importlib.util.spec_from_file_location("extract_codes", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _make_resource(msg_id: str, body: str, date: str) -> dict:
    return {
        "id": msg_id,
        "payload": {
            "mimeType": "text/plain",
            "headers": [
                {"name": "Subject", "value": "Sign-in"},
                {"name": "From", "value": "Acme <no-reply@acme.com>"},
                {"name": "Date", "value": date},
            ],
            "body": {"data": base64.urlsafe_b64encode(body.encode("utf-8")).decode("ascii")},
        },
    }


def test_load_resources_accepts_list_wrapper_and_single(cli, tmp_path):
    first = _make_resource("a", "code 111111", "Sat, 01 Mar 2025 10:00:00 +0000")
    second = _make_resource("b", "code 222222", "Sat, 01 Mar 2025 10:05:00 +0000")

    as_list = tmp_path / "list.json"
    as_list.write_text(json.dumps([first, second]), encoding="utf-8")
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"messages": [first, second]}), encoding="utf-8")
    single = tmp_path / "single.json"
    single.write_text(json.dumps(first), encoding="utf-8")

    assert [r["id"] for r in cli._load_resources(as_list)] == ["a", "b"]
    assert [r["id"] for r in cli._load_resources(wrapped)] == ["a", "b"]
    assert [r["id"] for r in cli._load_resources(single)] == ["a"]


def test_json_output_uses_field_aliases(cli, tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("OTPPICKER_KEYWORDS", raising=False)
    monkeypatch.delenv("OTPPICKER_LOOKBACK_MINUTES", raising=False)
    path = tmp_path / "messages.json"
    path.write_text(
        json.dumps(
            {
                "messages": [
                    _make_resource("a", "code 111111", "Sat, 01 Mar 2025 10:00:00 +0000"),
                    _make_resource("b", "Use 123-456", "Sat, 01 Mar 2025 10:05:00 +0000"),
                    _make_resource("c", "nothing here", "Sat, 01 Mar 2025 10:07:00 +0000"),
                ]
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setattr("sys.argv", ["extract_codes.py", "--input", str(path), "--json"])

    assert cli.main() == 0
    payload = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in payload] == ["b", "a"]
    received = payload[0].pop("receivedAt")
    assert dt.datetime.fromisoformat(received.replace("Z", "+00:00")) == dt.datetime(2025, 3, 1, 10, 5, tzinfo=dt.timezone.utc)
    assert payload[0] == {"id": "b", "subject": "Sign-in", "from": "no-reply@acme.com", "code": "123-456"}
