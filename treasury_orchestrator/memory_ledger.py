"""In-memory fungible asset ledger.

Simulates token bookkeeping without any external system: balances,
allowances and spender-initiated transfers. Used by the CLI, the default API
wiring and tests.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, Mapping, Optional

from .ledger import AssetLedger, as_amount

__all__ = ["InMemoryAssetLedger", "InMemoryLedgerBook", "UnknownAsset"]


class UnknownAsset(LookupError):
    """No ledger is registered for the requested asset."""


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"{where} must be an object, got {type(value).__name__}")
    return value


class InMemoryAssetLedger(AssetLedger):
    """Balances and allowances for one asset.

    ``transfer`` is executed on behalf of ``spender`` and debits the owner's
    allowance for that spender, like an ERC-20 ``transferFrom``.
    """

    def __init__(self, asset: str, spender: Optional[str] = None):
        self.asset = asset
        self.spender = spender
        self.balances: Dict[str, int] = defaultdict(int)
        self.allowances: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))

    # -- setup helpers ---------------------------------------------------
    def mint(self, account: str, amount: int) -> None:
        self.balances[account] += as_amount(amount)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self.allowances[owner][spender] = as_amount(amount)

    # -- AssetLedger -----------------------------------------------------
    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def authorized_amount(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if self.spender is None:
            raise RuntimeError(f"no spender bound to ledger {self.asset}")
        amount = as_amount(amount)
        if self.balance_of(sender) < amount:
            return False
        if self.authorized_amount(sender, self.spender) < amount:
            return False
        self.allowances[sender][self.spender] -= amount
        self.balances[sender] -= amount
        self.balances[recipient] += amount
        return True


class InMemoryLedgerBook:
    """``LedgerDirectory`` over a set of ``InMemoryAssetLedger`` instances."""

    def __init__(self, spender: Optional[str] = None):
        self.spender = spender
        self._ledgers: Dict[str, AssetLedger] = {}

    def add(self, asset: str, ledger: Optional[AssetLedger] = None) -> AssetLedger:
        """Register *ledger* (or a fresh in-memory one) for *asset*."""
        if ledger is None:
            ledger = InMemoryAssetLedger(asset, spender=self.spender)
        self._ledgers[asset] = ledger
        return ledger

    def ledger_for(self, asset: str) -> AssetLedger:
        try:
            return self._ledgers[asset]
        except KeyError:
            raise UnknownAsset(asset) from None

    def __contains__(self, asset: str) -> bool:
        return asset in self._ledgers

    @classmethod
    def from_state(cls, state: Mapping[str, Any], spender: str) -> "InMemoryLedgerBook":
        """Build a book from ``{"assets": {asset: {"balances": ..., "allowances": ...}}}``.

        Raises ``ValueError`` when the state does not have that shape.
        """
        book = cls(spender=spender)
        assets = _mapping(_mapping(state, "ledger state").get("assets"), "assets")
        for asset, data in assets.items():
            data = _mapping(data, f"asset {asset}")
            ledger = book.add(asset)
            for account, amount in _mapping(data.get("balances"), f"{asset}.balances").items():
                ledger.mint(account, int(amount))
            allowances = _mapping(data.get("allowances"), f"{asset}.allowances")
            for owner, grants in allowances.items():
                for grantee, amount in _mapping(grants, f"{asset}.allowances.{owner}").items():
                    ledger.approve(owner, grantee, int(amount))
        return book
