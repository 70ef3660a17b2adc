"""HTTP adapter for a REST asset-ledger gateway (offline-friendly).

Uses a shared `httpx.Client` with:
* Base URL / timeout from ``SweepSettings``
* Bearer token from the secrets manager (``LEDGER_TOKEN``)
* Prometheus counters + histogram (labels: endpoint, method, status)

Errors are raised, never masked; the orchestrator isolates them per entry.
Network access is never used in tests; they pass an ``httpx.MockTransport``.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from common.secrets import get_secret
from treasury_observability.metrics import (ledger_http_latency_seconds,
                                            ledger_http_requests_total)

from .ledger import AssetLedger, as_amount

__all__ = ["HttpAssetLedger", "HttpLedgerDirectory"]

_LOG = logging.getLogger(__name__)


def _segment(value: str) -> str:
    """Percent-encode one path segment, including dot segments."""
    encoded = quote(value, safe="")
    if encoded in (".", ".."):
        encoded = encoded.replace(".", "%2E")
    return encoded


def _amount(value: Any) -> int:
    """Accept JSON integers or decimal strings."""
    if isinstance(value, str) and value.isdigit():
        value = int(value)
    return as_amount(value)


class HttpLedgerDirectory:
    """Hands out one ``HttpAssetLedger`` per asset over a shared client."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        token = token if token is not None else get_secret("LEDGER_TOKEN")
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    def ledger_for(self, asset: str) -> "HttpAssetLedger":
        return HttpAssetLedger(self, asset)

    def request(self, method: str, endpoint: str, url: str, **kwargs) -> Dict[str, Any]:
        """Send one request; raise on transport errors and non-2xx replies."""
        start = time.perf_counter()
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.RequestError:
            ledger_http_requests_total.labels(endpoint, method.lower(), "error").inc()
            raise
        finally:
            ledger_http_latency_seconds.labels(endpoint).observe(time.perf_counter() - start)
        ledger_http_requests_total.labels(endpoint, method.lower(), resp.status_code).inc()
        _LOG.debug("ledger %s %s -> %s", method, url, resp.status_code)
        resp.raise_for_status()
        return resp.json()

    def close(self) -> None:
        self._client.close()

    # context-manager sugar
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class HttpAssetLedger(AssetLedger):
    def __init__(self, directory: HttpLedgerDirectory, asset: str):
        self._directory = directory
        self.asset = asset

    def balance_of(self, account: str) -> int:
        data = self._directory.request(
            "GET", "balance", f"/assets/{_segment(self.asset)}/balances/{_segment(account)}"
        )
        return _amount(data["balance"])

    def authorized_amount(self, owner: str, spender: str) -> int:
        path = "/assets/{}/allowances/{}/{}".format(
            _segment(self.asset), _segment(owner), _segment(spender)
        )
        data = self._directory.request("GET", "allowance", path)
        return _amount(data["allowance"])

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        # amounts travel as decimal strings; JSON numbers lose precision above 2**53
        data = self._directory.request(
            "POST",
            "transfer",
            f"/assets/{_segment(self.asset)}/transfers",
            json={"from": sender, "to": recipient, "amount": str(amount)},
        )
        return data.get("success") is True
