from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from common import secrets as secrets_module
from treasury_orchestrator.engine import SweepOrchestrator
from treasury_orchestrator.events import EventLog
from treasury_orchestrator.memory_ledger import InMemoryLedgerBook

SPENDER = "0xSWEEPER"
DEST = "0xDEST"


def pytest_configure(config):
    """If pytest-socket is installed, disable sockets and allow localhost if supported."""
    try:
        import pytest_socket

        pytest_socket.disable_socket()
        if hasattr(pytest_socket, "allow_hosts"):
            pytest_socket.allow_hosts("127.0.0.1", "localhost")
    except ImportError:
        pass


# ---------------------------------------------------------------------------
# Default auth token for API tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _secrets() -> None:
    """Provide default secrets for tests via the secrets manager."""

    secrets_module.secrets.set_override(
        {"API_TOKENS": {"tester": "testtoken"}, "JWT_SECRET": "testsecret"}
    )
    yield
    secrets_module.secrets.set_override({})


# ---------------------------------------------------------------------------
# Scriptable ledger double
# ---------------------------------------------------------------------------


class ScriptedLedger:
    """Ledger double whose answers are values or callables.

    A value is returned as-is; an exception instance is raised; a callable
    is invoked with the call arguments. Every call is recorded in ``calls``.
    """

    def __init__(self, balance: Any = 0, allowance: Any = 0, transfer: Any = True):
        self.balance = balance
        self.allowance = allowance
        self.transfer_result = transfer
        self.calls: List[Tuple[str, tuple]] = []

    @staticmethod
    def _answer(spec: Any, *args):
        if isinstance(spec, BaseException):
            raise spec
        if callable(spec):
            return spec(*args)
        return spec

    def balance_of(self, account):
        self.calls.append(("balance_of", (account,)))
        return self._answer(self.balance, account)

    def authorized_amount(self, owner, spender):
        self.calls.append(("authorized_amount", (owner, spender)))
        return self._answer(self.allowance, owner, spender)

    def transfer(self, sender, recipient, amount):
        self.calls.append(("transfer", (sender, recipient, amount)))
        return self._answer(self.transfer_result, sender, recipient, amount)


class DictDirectory:
    """``LedgerDirectory`` over a plain dict; records every lookup."""

    def __init__(self, ledgers: Optional[Dict[str, Any]] = None):
        self.ledgers = dict(ledgers or {})
        self.lookups: List[str] = []

    def ledger_for(self, asset):
        self.lookups.append(asset)
        return self.ledgers[asset]


@pytest.fixture()
def book() -> InMemoryLedgerBook:
    return InMemoryLedgerBook(spender=SPENDER)


@pytest.fixture()
def make_orchestrator() -> Callable[..., Tuple[SweepOrchestrator, EventLog]]:
    def _make(directory, spender: str = SPENDER):
        log = EventLog()
        return SweepOrchestrator(directory, spender=spender, sink=log), log

    return _make
