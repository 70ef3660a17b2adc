"""Persistent journal of sweep events.

Each emitted event becomes one immutable ``SweepJournal`` row so a batch can
be reconstructed after the fact. Amounts are stored as text because ledger
amounts are unbounded integers.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sqlalchemy import Column, String
from sqlmodel import Field, Session, SQLModel, create_engine, select

from .models import BatchCompleted, SweepEvent, TransferCompleted

__all__ = [
    "SweepJournal",
    "JournalSink",
    "make_engine",
    "init_db",
    "load_batch_events",
]

DEFAULT_JOURNAL_DB_URL = "sqlite:///./.data/sweep_journal.db"


class SweepJournal(SQLModel, table=True):
    """Immutable record of one sweep event."""

    __tablename__ = "sweep_journal"
    __table_args__ = {"extend_existing": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    ts: datetime = Field(default_factory=datetime.utcnow, index=True)
    batch_id: str = Field(sa_column=Column(String, nullable=False, index=True))
    event: str = Field(sa_column=Column(String, nullable=False))

    # TransferCompleted
    account: Optional[str] = None
    asset: Optional[str] = None
    destination: Optional[str] = None
    amount: Optional[str] = None

    # BatchCompleted
    total_attempted: Optional[int] = None
    total_succeeded: Optional[int] = None


def make_engine(db_url: str | None = None):
    """Create an engine for *db_url* (defaults to ``SWEEP_JOURNAL_DB_URL``)."""
    url = db_url or os.getenv("SWEEP_JOURNAL_DB_URL", DEFAULT_JOURNAL_DB_URL)
    if url.startswith("sqlite:///./"):
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    )


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine, tables=[SweepJournal.__table__])


def _to_row(event: SweepEvent) -> SweepJournal:
    if isinstance(event, TransferCompleted):
        return SweepJournal(
            ts=event.ts,
            batch_id=event.batch_id,
            event=event.event,
            account=event.account,
            asset=event.asset,
            destination=event.destination,
            amount=str(event.amount),
        )
    return SweepJournal(
        ts=event.ts,
        batch_id=event.batch_id,
        event=event.event,
        total_attempted=event.total_attempted,
        total_succeeded=event.total_succeeded,
    )


class JournalSink:
    """Event sink that commits each event on its own session."""

    def __init__(self, engine):
        self.engine = engine
        init_db(engine)

    def emit(self, event: SweepEvent) -> None:
        with Session(self.engine) as session:
            session.add(_to_row(event))
            session.commit()


def _utc(ts: datetime) -> datetime:
    # SQLite drops tzinfo; stored values are always UTC
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def load_batch_events(session: Session, batch_id: str) -> List[SweepEvent]:
    """Rebuild the events of *batch_id* in the order they were written."""
    rows = session.exec(
        select(SweepJournal)
        .where(SweepJournal.batch_id == batch_id)
        .order_by(SweepJournal.id)
    ).all()
    events: List[SweepEvent] = []
    for row in rows:
        if row.event == "TransferCompleted":
            events.append(
                TransferCompleted(
                    batch_id=row.batch_id,
                    account=row.account,
                    asset=row.asset,
                    destination=row.destination,
                    amount=int(row.amount),
                    ts=_utc(row.ts),
                )
            )
        else:
            events.append(
                BatchCompleted(
                    batch_id=row.batch_id,
                    total_attempted=row.total_attempted,
                    total_succeeded=row.total_succeeded,
                    ts=_utc(row.ts),
                )
            )
    return events
