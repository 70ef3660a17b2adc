"""Prometheus metrics for Treasury services."""

from .metrics import (ledger_http_latency_seconds, ledger_http_requests_total,
                      maybe_start_http_server, sweep_amount_moved_total,
                      sweep_batches_total, sweep_entries_total,
                      sweep_event_sink_failures_total,
                      sweep_latency_seconds, sweep_reentrancy_rejections_total,
                      sweep_skipped_entries_total)

__all__ = [
    "maybe_start_http_server",
    "sweep_batches_total",
    "sweep_entries_total",
    "sweep_event_sink_failures_total",
    "sweep_skipped_entries_total",
    "sweep_amount_moved_total",
    "sweep_latency_seconds",
    "sweep_reentrancy_rejections_total",
    "ledger_http_requests_total",
    "ledger_http_latency_seconds",
]
