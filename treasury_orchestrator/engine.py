"""Sweep orchestration engine.

Pulls the largest amount of each asset that a source account both holds and
has authorized the orchestrator to move, into one destination account.
Ledger failures are isolated per (account, asset) entry; only request
validation and reentrancy abort a call.
"""
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional
from uuid import uuid4

from treasury_observability.metrics import (sweep_amount_moved_total,
                                            sweep_batches_total,
                                            sweep_entries_total,
                                            sweep_event_sink_failures_total,
                                            sweep_latency_seconds,
                                            sweep_reentrancy_rejections_total,
                                            sweep_skipped_entries_total)

from .errors import InvalidRequest, Reentrant
from .events import EventLog, EventSink
from .ledger import LedgerDirectory, as_amount, guarded_call
from .models import (BatchCompleted, BatchSummary, SweepEvent, SweepRequest,
                     TransferCompleted, TransferOutcome, is_null_identifier)

__all__ = ["SweepOrchestrator", "validate_request"]

_LOG = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


def validate_request(request: SweepRequest) -> None:
    """Raise ``InvalidRequest`` listing every structural problem in *request*."""
    problems: List[str] = []
    if not request.accounts:
        problems.append("no source accounts")
    if is_null_identifier(request.destination):
        problems.append("destination is the null identifier")
    for idx, source in enumerate(request.accounts):
        if is_null_identifier(source.account):
            problems.append(f"accounts[{idx}]: account is the null identifier")
        if not source.assets:
            problems.append(f"accounts[{idx}]: empty asset list")
    if problems:
        raise InvalidRequest(problems)


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class SweepOrchestrator:
    """Run sweep batches against a ledger directory, one batch at a time."""

    def __init__(
        self,
        directory: LedgerDirectory,
        spender: str,
        sink: Optional[EventSink] = None,
    ):
        self.directory = directory
        self.spender = spender
        self.sink: EventSink = sink if sink is not None else EventLog()
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            sweep_batches_total.labels(outcome="reentrant").inc()
            sweep_reentrancy_rejections_total.inc()
            _LOG.error("sweep rejected: another sweep is in progress")
            raise Reentrant()
        try:
            yield
        finally:
            self._lock.release()

    def _emit(self, event: SweepEvent) -> None:
        """Hand *event* to the sink; a failing sink is logged, never fatal."""
        try:
            self.sink.emit(event)
        except Exception:
            sweep_event_sink_failures_total.labels(event=event.event).inc()
            _LOG.exception(
                "event sink failed for %s", event.event, extra={"batch_id": event.batch_id}
            )

    # ------------------------------------------------------------------
    def execute_sweep(self, request: SweepRequest) -> BatchSummary:
        """Sweep every non-null asset of every account into ``request.destination``.

        Raises ``Reentrant`` if a sweep is already running and
        ``InvalidRequest`` if the request is malformed. Otherwise always
        returns a summary; individual entries fail independently.
        """
        with self._exclusive():
            try:
                validate_request(request)
            except InvalidRequest as exc:
                sweep_batches_total.labels(outcome="invalid").inc()
                _LOG.warning("sweep rejected: %s", "; ".join(exc.problems))
                raise

            t0 = time.perf_counter()
            summary = BatchSummary(batch_id=uuid4().hex)
            destination = request.destination
            _LOG.info(
                "sweep started: %d account(s) -> %s",
                len(request.accounts),
                destination,
                extra={"batch_id": summary.batch_id},
            )

            for source in request.accounts:
                for asset in source.assets:
                    if is_null_identifier(asset):
                        sweep_skipped_entries_total.inc()
                        continue
                    summary.total_attempted += 1
                    outcome = self.sweep_asset(source.account, asset, destination)
                    summary.outcomes.append(outcome)
                    if not outcome.success:
                        sweep_entries_total.labels(result=outcome.reason).inc()
                        _LOG.warning(
                            "sweep entry failed: account=%s asset=%s reason=%s",
                            source.account,
                            asset,
                            outcome.reason,
                            extra={
                                "batch_id": summary.batch_id,
                                "account": source.account,
                                "asset": asset,
                                "reason": outcome.reason,
                            },
                        )
                        continue
                    summary.total_succeeded += 1
                    summary.total_moved += outcome.amount_moved
                    sweep_entries_total.labels(result="success").inc()
                    sweep_amount_moved_total.inc(outcome.amount_moved)
                    self._emit(
                        TransferCompleted(
                            batch_id=summary.batch_id,
                            account=source.account,
                            asset=asset,
                            destination=destination,
                            amount=outcome.amount_moved,
                        )
                    )

            self._emit(
                BatchCompleted(
                    batch_id=summary.batch_id,
                    total_attempted=summary.total_attempted,
                    total_succeeded=summary.total_succeeded,
                )
            )
            sweep_batches_total.labels(outcome="completed").inc()
            sweep_latency_seconds.observe(time.perf_counter() - t0)
            _LOG.info(
                "sweep finished: attempted=%d succeeded=%d",
                summary.total_attempted,
                summary.total_succeeded,
                extra={"batch_id": summary.batch_id},
            )
            return summary

    # ------------------------------------------------------------------
    def sweep_asset(self, account: str, asset: str, destination: str) -> TransferOutcome:
        """Move ``min(balance, authorized)`` of *asset* from *account* to *destination*.

        Never raises: every ledger failure becomes ``success=False`` with the
        failing step recorded in ``reason``.
        """

        def failed(reason: str) -> TransferOutcome:
            return TransferOutcome(account=account, asset=asset, success=False, reason=reason)

        resolved = guarded_call(self.directory.ledger_for, asset)
        if not resolved.ok:
            return failed("ledger_unavailable")
        ledger = resolved.value

        # 1. balance
        balance = guarded_call(ledger.balance_of, account, convert=as_amount)
        if not balance.ok:
            return failed("balance_query_failed")
        if balance.value == 0:
            return failed("zero_balance")

        # 2. authorization
        authorized = guarded_call(ledger.authorized_amount, account, self.spender, convert=as_amount)
        if not authorized.ok:
            return failed("allowance_query_failed")
        if authorized.value == 0:
            return failed("zero_allowance")

        # 3. amount
        amount = min(balance.value, authorized.value)

        # 4. transfer
        moved = guarded_call(ledger.transfer, account, destination, amount)
        if not moved.ok:
            return failed("transfer_failed")
        if moved.value is not True:
            return failed("transfer_rejected")
        return TransferOutcome(account=account, asset=asset, success=True, amount_moved=amount)
