# treasury_observability/metrics.py
"""
Prometheus metrics for the sweep orchestrator.

This module does NOT start a standalone HTTP server.
Expose metrics from the FastAPI app by mounting the ASGI exporter:

    from prometheus_client import make_asgi_app
    app.mount("/metrics", make_asgi_app())

For the CLI, set METRICS_HTTP_SERVER=1 and call maybe_start_http_server().
"""

import os
import threading
from typing import Any, Dict, Tuple, Type

from prometheus_client import Counter, Histogram, start_http_server

# ----------------------------
# Optional standalone server
# ----------------------------
_METRICS_PORT = int(os.getenv("METRICS_PORT", "8001"))
_server_started = False
_server_lock = threading.Lock()


def maybe_start_http_server() -> bool:
    """
    Start a sidecar metrics HTTP server exactly once, but only if
    METRICS_HTTP_SERVER=1 is set in the environment.

    Returns True when a server is running after the call.
    """
    global _server_started
    if _server_started:
        return True
    if os.getenv("METRICS_HTTP_SERVER") != "1":
        return False
    with _server_lock:
        if not _server_started:
            start_http_server(_METRICS_PORT)
            _server_started = True
    return True


# ----------------------------
# Registration helper (avoid duplicate collectors)
# ----------------------------
_METRICS: Dict[Tuple[Type[Any], str], Any] = {}


def get_metric(cls: Type[Any], name: str, *args, **kwargs):
    key = (cls, name)
    if key in _METRICS:
        return _METRICS[key]
    metric = cls(name, *args, **kwargs)
    _METRICS[key] = metric
    return metric


# ----------------------------
# Sweep metrics
# ----------------------------

# Completed or aborted sweep calls (outcome: completed / invalid / reentrant)
sweep_batches_total = get_metric(
    Counter,
    "sweep_batches_total",
    "Sweep calls by outcome",
    ["outcome"],
)

# One increment per attempted (account, asset) entry
sweep_entries_total = get_metric(
    Counter,
    "sweep_entries_total",
    "Sweep entries attempted, by result (success or failure reason)",
    ["result"],
)

sweep_skipped_entries_total = get_metric(
    Counter,
    "sweep_skipped_entries_total",
    "Asset entries skipped because the asset id is the null identifier",
)

sweep_amount_moved_total = get_metric(
    Counter,
    "sweep_amount_moved_total",
    "Sum of base units moved by successful sweep entries",
)

sweep_latency_seconds = get_metric(
    Histogram,
    "sweep_latency_seconds",
    "Latency of sweep execution in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10),
)

sweep_reentrancy_rejections_total = get_metric(
    Counter,
    "sweep_reentrancy_rejections_total",
    "Sweep calls rejected because another sweep was in progress",
)

# Events a sink failed to accept; the sweep itself still completes
sweep_event_sink_failures_total = get_metric(
    Counter,
    "sweep_event_sink_failures_total",
    "Sweep events that an event sink failed to accept",
    ["event"],
)

# ----------------------------
# Ledger gateway metrics
# ----------------------------

ledger_http_requests_total = get_metric(
    Counter,
    "ledger_http_requests_total",
    "HTTP requests to the asset ledger gateway",
    ["endpoint", "method", "status"],
)

ledger_http_latency_seconds = get_metric(
    Histogram,
    "ledger_http_latency_seconds",
    "Latency for asset ledger gateway requests",
    ["endpoint"],
)
