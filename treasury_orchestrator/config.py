"""Environment configuration for the sweep service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .journal import DEFAULT_JOURNAL_DB_URL

__all__ = ["SweepSettings", "load_settings"]


def _get_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


@dataclass(slots=True)
class SweepSettings:
    """Runtime settings.

    Attributes
    ----------
    spender
        Account id of the orchestrator itself; source accounts authorize
        this id to move their assets.
    journal_db_url
        SQLAlchemy URL of the sweep event journal. Empty disables the journal.
    ledger_url
        Base URL of the REST ledger gateway. ``None`` selects the in-memory
        ledger book.
    """

    spender: str = "sweeper"
    journal_db_url: str = DEFAULT_JOURNAL_DB_URL
    ledger_url: Optional[str] = None
    ledger_timeout: float = 10.0
    log_format: str = "text"
    service_name: str = "sweep_orchestrator"


def load_settings() -> SweepSettings:
    return SweepSettings(
        spender=os.getenv("SWEEP_SPENDER", "sweeper"),
        journal_db_url=os.getenv("SWEEP_JOURNAL_DB_URL", DEFAULT_JOURNAL_DB_URL),
        ledger_url=os.getenv("SWEEP_LEDGER_URL") or None,
        ledger_timeout=_get_float("SWEEP_LEDGER_TIMEOUT", 10.0),
        log_format=os.getenv("LOG_FORMAT", "text").lower(),
        service_name=os.getenv("SERVICE_NAME", "sweep_orchestrator"),
    )
