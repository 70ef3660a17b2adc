import io
import json
import logging

from common.logging import JsonFormatter, ServiceFilter, configure_logging


def test_json_formatter_includes_sweep_fields():
    record = logging.LogRecord("treasury_orchestrator.engine", logging.WARNING, __file__, 1, "entry failed: %s", ("zero_balance",), None)
    record.batch_id = "b1"
    record.asset = "X"
    record.reason = "zero_balance"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["message"] == "entry failed: zero_balance"
    assert payload["batch_id"] == "b1"
    assert payload["asset"] == "X"
    assert "account" not in payload


def test_configure_logging_json_with_service():
    stream = io.StringIO()
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        handler = configure_logging("json", service_name="sweep_test", stream=stream)
        assert any(isinstance(f, ServiceFilter) for f in handler.filters)

        logging.getLogger("treasury_orchestrator.engine").info("sweep finished", extra={"batch_id": "b9"})

        line = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert line["service"] == "sweep_test"
        assert line["batch_id"] == "b9"
        assert line["message"] == "sweep finished"
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])


def test_configure_logging_text():
    stream = io.StringIO()
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        configure_logging("text", stream=stream)
        logging.getLogger("x").warning("hello")
        assert "WARNING x: hello" in stream.getvalue()
    finally:
        root.handlers[:] = saved[0]
        root.setLevel(saved[1])
