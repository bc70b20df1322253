"""Tests for the structured logging system (rotable_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from rotable_kernel.domain.component import ComponentStatus
from rotable_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "rotable_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("stage_completed", extra={"stage": 3, "stage_name": "Testing"})

        record = _parse_log(stream)
        assert record["stage"] == 3
        assert record["stage_name"] == "Testing"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(component_id="CMP-1", operation="install")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["component_id"] == "CMP-1"
        assert record["operation"] == "install"

    def test_kernel_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        from rotable_kernel.exceptions import ComponentNotRFUError

        try:
            raise ComponentNotRFUError("CMP-1", "qa-3")
        except ComponentNotRFUError:
            get_logger("test").error("install_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "COMPONENT_NOT_RFU"
        assert record["exc_type"] == "ComponentNotRFUError"
        assert record["exc_component_id"] == "CMP-1"
        assert record["exc_status"] == "qa-3"
        assert "traceback" in record

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "component_id" not in record
        assert "operation" not in record

    def test_uuid_decimal_and_enum_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "typed",
            extra={
                "request_id": uid,
                "estimated_cost": Decimal("1250.50"),
                "status": ComponentStatus.QA_2,
            },
        )

        record = _parse_log(stream)
        assert record["request_id"] == str(uid)
        assert record["estimated_cost"] == "1250.50"
        assert record["status"] == "qa-2"

    def test_debug_suppressed_at_info(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        assert [r["message"] for r in logs] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_and_get(self):
        LogContext.set(component_id="x", actor_id="y")
        assert LogContext.get_all() == {"component_id": "x", "actor_id": "y"}

    def test_clear(self):
        LogContext.set(component_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(component_id="outer")
        with LogContext.bind(component_id="inner"):
            assert LogContext.get_all()["component_id"] == "inner"
        assert LogContext.get_all()["component_id"] == "outer"

    def test_bind_restores_none(self):
        assert "operation" not in LogContext.get_all()
        with LogContext.bind(operation="complete_stage"):
            assert LogContext.get_all()["operation"] == "complete_stage"
        assert "operation" not in LogContext.get_all()

    def test_bind_ignores_none_values(self):
        LogContext.set(actor_id="mechanic")
        with LogContext.bind(actor_id=None):
            assert LogContext.get_all()["actor_id"] == "mechanic"

    def test_all_fields(self):
        LogContext.set(component_id="k", actor_id="a", operation="o")
        assert LogContext.get_all() == {"component_id": "k", "actor_id": "a", "operation": "o"}
        assert tuple(LogContext.get_all()) == LogContext.FIELDS

    @pytest.mark.parametrize("field", ["correlation_id", "trace_id"])
    def test_unknown_field_rejected(self, field):
        with pytest.raises(TypeError, match=field):
            LogContext.set(**{field: "x"})
        with pytest.raises(TypeError, match=field):
            with LogContext.bind(**{field: "x"}):
                pass
        assert LogContext.get_all() == {}


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)
        assert len(logging.getLogger("rotable_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.ledger").name == "rotable_kernel.services.ledger"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "rotable_kernel.deep.nested.module"
