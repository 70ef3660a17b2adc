"""Asset ledger capability interfaces.

Every adapter must implement ``AssetLedger`` (one instance per asset) and be
reachable through a ``LedgerDirectory`` so the orchestrator can be wired to an
in-memory book, an HTTP gateway or a test double.

Ledger code is untrusted: any call may raise, return garbage or try to call
back into the orchestrator. ``guarded_call`` turns each call into a tagged
``LedgerCall`` so a failure never unwinds past a single sweep entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

__all__ = [
    "AssetLedger",
    "LedgerDirectory",
    "LedgerCall",
    "guarded_call",
    "as_amount",
]


class AssetLedger(Protocol):
    """Balance, authorization and transfer operations for one asset."""

    def balance_of(self, account: str) -> int:
        ...

    def authorized_amount(self, owner: str, spender: str) -> int:
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        ...


class LedgerDirectory(Protocol):
    """Resolve the ledger for an asset identifier."""

    def ledger_for(self, asset: str) -> AssetLedger:
        ...


@dataclass(frozen=True)
class LedgerCall:
    """Tagged result of one external call: ``ok`` carries ``value``, otherwise ``error``."""

    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "LedgerCall":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "LedgerCall":
        return cls(ok=False, error=error)


def as_amount(value: Any) -> int:
    """Return *value* as an unsigned amount or raise ``ValueError``."""
    # bool is an int subclass; a ledger answering True/False for a balance is malformed
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"malformed amount {value!r}")
    if value < 0:
        raise ValueError(f"negative amount {value!r}")
    return value


def guarded_call(fn: Callable[..., Any], *args: Any, convert: Callable[[Any], Any] | None = None) -> LedgerCall:
    """Invoke *fn* and capture any exception as a failed ``LedgerCall``."""
    try:
        value = fn(*args)
        if convert is not None:
            value = convert(value)
    except Exception as exc:  # untrusted ledger code
        return LedgerCall.failure(f"{exc.__class__.__name__}: {exc}")
    return LedgerCall.success(value)
