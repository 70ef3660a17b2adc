"""Batch-fatal errors raised by the sweep orchestrator.

Entry-local ledger failures never surface as exceptions; they are folded into
``TransferOutcome`` records instead.
"""
from __future__ import annotations

from typing import List, Sequence

__all__ = ["SweepError", "InvalidRequest", "Reentrant"]


class SweepError(Exception):
    """Base class for errors that abort a whole sweep call."""


class InvalidRequest(SweepError):
    """The request failed validation; nothing was attempted."""

    def __init__(self, problems: Sequence[str]):
        self.problems: List[str] = list(problems)
        super().__init__("invalid sweep request: " + "; ".join(self.problems))


class Reentrant(SweepError):
    """A sweep is already in progress on this orchestrator."""

    def __init__(self, message: str = "sweep already in progress"):
        super().__init__(message)
