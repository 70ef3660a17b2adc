import json
import os
import subprocess
import sys
from pathlib import Path

import pytest
from sqlmodel import Session, create_engine, select

from treasury_orchestrator.cli import main
from treasury_orchestrator.journal import SweepJournal

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture()
def files(tmp_path):
    request = {
        "accounts": [
            {"account": "A", "assets": ["X", "0x0000000000000000000000000000000000000000"]},
            {"account": "B", "assets": ["Y"]},
        ],
        "destination": "D",
    }
    state = {
        "assets": {
            "X": {"balances": {"A": 100}, "allowances": {"A": {"sweeper": 40}}},
            "Y": {"balances": {"B": 0}},
        }
    }
    req_path = tmp_path / "request.json"
    state_path = tmp_path / "state.json"
    req_path.write_text(json.dumps(request))
    state_path.write_text(json.dumps(state))
    return req_path, state_path


def test_cli_prints_summary(files, capsys):
    req_path, state_path = files

    rc = main([str(req_path), "--ledger", str(state_path), "--spender", "sweeper"])

    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["total_attempted"] == 2
    assert out["total_succeeded"] == 1
    assert out["total_moved"] == 40
    assert [e["event"] for e in out["events"]] == ["TransferCompleted", "BatchCompleted"]


def test_cli_invalid_request_exit_code(tmp_path, files, capsys):
    _, state_path = files
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"accounts": [], "destination": "D"}))

    rc = main([str(bad), "--ledger", str(state_path)])

    assert rc == 2
    out = json.loads(capsys.readouterr().out)
    assert out["problems"] == ["no source accounts"]


def test_cli_unreadable_input(tmp_path, files):
    _, state_path = files
    assert main([str(tmp_path / "missing.json"), "--ledger", str(state_path)]) == 1

    garbage = tmp_path / "garbage.json"
    garbage.write_text("{not json")
    assert main([str(garbage), "--ledger", str(state_path)]) == 1


@pytest.mark.parametrize(
    "state",
    [
        [],
        "assets",
        {"assets": ["X"]},
        {"assets": {"X": 5}},
        {"assets": {"X": {"balances": [1, 2]}}},
        {"assets": {"X": {"allowances": {"A": 40}}}},
    ],
)
def test_cli_malformed_ledger_state(tmp_path, files, state):
    req_path, _ = files
    bad_state = tmp_path / "bad_state.json"
    bad_state.write_text(json.dumps(state))

    assert main([str(req_path), "--ledger", str(bad_state)]) == 1


def test_cli_writes_journal(tmp_path, files, capsys):
    req_path, state_path = files
    db_url = f"sqlite:///{tmp_path / 'journal.db'}"

    rc = main([str(req_path), "--ledger", str(state_path), "--spender", "sweeper", "--journal-db", db_url])

    assert rc == 0
    batch_id = json.loads(capsys.readouterr().out)["batch_id"]
    with Session(create_engine(db_url)) as session:
        rows = session.exec(select(SweepJournal).where(SweepJournal.batch_id == batch_id)).all()
    assert [r.event for r in rows] == ["TransferCompleted", "BatchCompleted"]


def test_cli_runs_as_module(files):
    req_path, state_path = files
    env = {**os.environ, "SWEEP_SPENDER": "sweeper", "PYTHONPATH": str(ROOT)}

    result = subprocess.run(
        [sys.executable, "-m", "treasury_orchestrator.cli", str(req_path), "--ledger", str(state_path)],
        capture_output=True,
        text=True,
        env=env,
        cwd=ROOT,
    )

    assert result.returncode == 0, result.stderr
    assert json.loads(result.stdout)["total_succeeded"] == 1
