"""FastAPI app exposing sweep execution.

Routes
------
POST /api/sweep/v1/sweeps                     run a sweep batch
GET  /api/sweep/v1/batches/{batch_id}/events  journaled events of a batch
GET  /healthz
GET  /metrics                                 Prometheus exporter
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from prometheus_client import make_asgi_app
from sqlmodel import Session

from common.auth import require_token
from common.logging import configure_logging

from .config import SweepSettings, load_settings
from .engine import SweepOrchestrator
from .errors import InvalidRequest, Reentrant
from .events import EventLog, EventSink
from .http_ledger import HttpLedgerDirectory
from .journal import JournalSink, load_batch_events, make_engine
from .ledger import LedgerDirectory
from .memory_ledger import InMemoryLedgerBook
from .models import BatchSummary, SweepRequest

_LOG = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sweep/v1", tags=["sweep"])


# ---------------------------------------------------------------------------
# Dependency injection helpers
# ---------------------------------------------------------------------------


def get_orchestrator(request: Request) -> SweepOrchestrator:
    return request.app.state.orchestrator


def get_journal_engine(request: Request):
    return getattr(request.app.state, "journal_engine", None)


def _default_directory(settings: SweepSettings) -> LedgerDirectory:
    if settings.ledger_url:
        return HttpLedgerDirectory(settings.ledger_url, timeout=settings.ledger_timeout)
    _LOG.warning("SWEEP_LEDGER_URL not set; using an empty in-memory ledger book")
    return InMemoryLedgerBook(spender=settings.spender)


def create_app(
    directory: Optional[LedgerDirectory] = None,
    sink: Optional[EventSink] = None,
    settings: Optional[SweepSettings] = None,
    journal_engine=None,
) -> FastAPI:
    """Build the sweep service app; tests inject their own ledger and journal.

    Without an explicit *sink* events are journaled to
    ``settings.journal_db_url`` (or kept in memory if that is empty).
    """
    settings = settings or load_settings()
    configure_logging(settings.log_format, service_name=settings.service_name)

    if sink is None:
        if journal_engine is None and settings.journal_db_url:
            journal_engine = make_engine(settings.journal_db_url)
        sink = JournalSink(journal_engine) if journal_engine is not None else EventLog()

    app = FastAPI(title="Sweep Orchestrator")
    app.state.settings = settings
    app.state.journal_engine = journal_engine
    app.state.orchestrator = SweepOrchestrator(
        directory if directory is not None else _default_directory(settings),
        spender=settings.spender,
        sink=sink,
    )
    app.include_router(router)

    @app.get("/healthz")
    def healthz() -> Dict[str, Any]:
        return {"ok": True, "busy": app.state.orchestrator.busy}

    app.mount("/metrics", make_asgi_app())
    return app


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/sweeps", response_model=BatchSummary)
def run_sweep(
    req: SweepRequest,
    orchestrator: SweepOrchestrator = Depends(get_orchestrator),
    caller: Dict[str, Any] = Depends(require_token),
):
    _LOG.info("sweep requested by %s", caller.get("sub", "unknown"))
    try:
        return orchestrator.execute_sweep(req)
    except InvalidRequest as exc:
        raise HTTPException(
            status_code=422,
            detail={"error": "invalid_request", "problems": exc.problems},
        ) from exc
    except Reentrant as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="sweep_in_progress"
        ) from exc


@router.get("/batches/{batch_id}/events")
def batch_events(
    batch_id: str,
    engine=Depends(get_journal_engine),
    _: Dict[str, Any] = Depends(require_token),
) -> List[Dict[str, Any]]:
    if engine is None:
        raise HTTPException(status_code=404, detail="journal_disabled")
    with Session(engine) as session:
        events = load_batch_events(session, batch_id)
    if not events:
        raise HTTPException(status_code=404, detail="batch_not_found")
    return [e.model_dump(mode="json") for e in events]
