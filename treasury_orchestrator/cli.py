"""Run one sweep batch against a ledger state file.

Usage:
    python -m treasury_orchestrator.cli request.json --ledger state.json [--spender ID] [--journal-db URL]

Prints the batch summary plus its events as JSON.
Exit codes: 0 summary printed, 1 unreadable input, 2 invalid request.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from common.logging import configure_logging
from treasury_observability.metrics import maybe_start_http_server

from .config import load_settings
from .engine import SweepOrchestrator
from .errors import InvalidRequest
from .events import EventLog, FanOutSink
from .journal import JournalSink, make_engine
from .memory_ledger import InMemoryLedgerBook
from .models import SweepRequest

_LOG = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    settings = load_settings()
    ap = argparse.ArgumentParser(description="Sweep assets from source accounts into one destination")
    ap.add_argument("request", help="JSON file holding the sweep request")
    ap.add_argument("--ledger", required=True, help="JSON file holding ledger balances and allowances")
    ap.add_argument("--spender", default=settings.spender, help="account id of the orchestrator")
    ap.add_argument("--journal-db", default=None, help="SQLAlchemy URL; events are journaled when set")
    ap.add_argument("--log-format", default=settings.log_format, choices=["text", "json"])
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_format, service_name="sweep_cli", stream=sys.stderr)
    maybe_start_http_server()

    try:
        request = SweepRequest.model_validate_json(Path(args.request).read_text(encoding="utf-8"))
        state = json.loads(Path(args.ledger).read_text(encoding="utf-8"))
        book = InMemoryLedgerBook.from_state(state, spender=args.spender)
    except (OSError, TypeError, ValueError, ValidationError) as exc:
        _LOG.error("cannot load input: %s", exc)
        return 1

    log = EventLog()
    sinks = [log]
    if args.journal_db:
        sinks.append(JournalSink(make_engine(args.journal_db)))
    orchestrator = SweepOrchestrator(book, spender=args.spender, sink=FanOutSink(sinks))

    try:
        summary = orchestrator.execute_sweep(request)
    except InvalidRequest as exc:
        print(json.dumps({"error": "invalid_request", "problems": exc.problems}, indent=2))
        return 2

    payload = summary.model_dump(mode="json")
    payload["events"] = [e.model_dump(mode="json") for e in log.events]
    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
