"""Data models for the sweep orchestrator."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

NULL_ADDRESS = "0x" + "0" * 40


def is_null_identifier(identifier: Optional[str]) -> bool:
    """True for ``None``, blank strings and hex strings whose value is zero."""
    if identifier is None:
        return True
    text = identifier.strip()
    if not text:
        return True
    if text[:2].lower() == "0x":
        digits = text[2:]
        try:
            return int(digits or "0", 16) == 0
        except ValueError:
            return False
    return False


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class SourceAccount(BaseModel):
    """One account to sweep and the assets to pull from it, in order."""

    account: Optional[str] = None
    assets: List[Optional[str]] = Field(default_factory=list)


class SweepRequest(BaseModel):
    """Batch request. Structural rules are enforced by ``validate_request``."""

    accounts: List[SourceAccount] = Field(default_factory=list)
    destination: Optional[str] = None


class TransferOutcome(BaseModel):
    """Result of one (account, asset) attempt."""

    account: str
    asset: str
    success: bool
    amount_moved: int = 0
    reason: Optional[str] = None


class BatchSummary(BaseModel):
    batch_id: str
    total_attempted: int = 0
    total_succeeded: int = 0
    total_moved: int = 0
    outcomes: List[TransferOutcome] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Observable events
# ---------------------------------------------------------------------------


class TransferCompleted(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: Literal["TransferCompleted"] = "TransferCompleted"
    batch_id: str
    account: str
    asset: str
    destination: str
    amount: int
    ts: datetime = Field(default_factory=_utcnow)


class BatchCompleted(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: Literal["BatchCompleted"] = "BatchCompleted"
    batch_id: str
    total_attempted: int
    total_succeeded: int
    ts: datetime = Field(default_factory=_utcnow)


SweepEvent = Union[TransferCompleted, BatchCompleted]
