"""CLI entrypoint to extract OTP codes from saved Gmail message resources."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from otppicker.core.settings import PickerSettings
from otppicker.services import ResultAssembler, build_search_query
from otppicker.services.gmail import messages_from_gmail
from otppicker.utils.logging import get_logger, set_level


logger = get_logger("ExtractCLI")


def _load_resources(path: Path) -> list[dict]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        # {"messages": [...]} wrapper or a single message
        data = data.get("messages", [data])
    return list(data)


def main() -> int:
    parser = argparse.ArgumentParser(description="Extract one-time passcodes from Gmail message JSON.")
    parser.add_argument("--input", type=Path, required=True, help="JSON file with one message or a list of messages")
    parser.add_argument("--config", type=Path, default=None, help="Path to picker YAML")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument("--show-query", action="store_true", help="Print the upstream search query")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        set_level("DEBUG")

    try:
        settings = PickerSettings.load(args.config)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    console = Console()
    if args.show_query:
        console.print(build_search_query(settings.keywords, lookback_minutes=settings.lookback_minutes))

    messages = messages_from_gmail(_load_resources(args.input)[: settings.max_results])
    results = ResultAssembler.from_settings(settings).assemble(messages)

    if args.json:
        payload = [result.model_dump(mode="json", by_alias=True) for result in results]
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
        return 0

    table = Table(title="One-time passcodes")
    for column in ("Received", "From", "Subject", "Code"):
        table.add_column(column)
    for result in results:
        table.add_row(result.received_at.isoformat(), result.sender, result.subject, result.code)
    console.print(table)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
