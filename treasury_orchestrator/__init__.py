"""Treasury sweep orchestrator: pull authorized asset balances into one account."""

from .engine import SweepOrchestrator, validate_request
from .errors import InvalidRequest, Reentrant, SweepError
from .events import EventLog, EventSink, FanOutSink
from .ledger import AssetLedger, LedgerDirectory
from .models import (NULL_ADDRESS, BatchCompleted, BatchSummary, SourceAccount,
                     SweepRequest, TransferCompleted, TransferOutcome,
                     is_null_identifier)

__all__ = [
    "SweepOrchestrator",
    "validate_request",
    "SweepError",
    "InvalidRequest",
    "Reentrant",
    "EventLog",
    "EventSink",
    "FanOutSink",
    "AssetLedger",
    "LedgerDirectory",
    "NULL_ADDRESS",
    "SourceAccount",
    "SweepRequest",
    "TransferOutcome",
    "BatchSummary",
    "TransferCompleted",
    "BatchCompleted",
    "is_null_identifier",
]
