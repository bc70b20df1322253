"""
Pytest fixtures for the rotable kernel test suite.

Provides:
- Structured logging configured for the whole session, plus a
  ``captured_logs`` fixture returning parsed JSON log lines
- A deterministic clock and a recording notifier
- Kernels over the in-memory, SQLite and workbook stores
- Helpers that walk a component through the lifecycle

The SQL and workbook fixtures write into ``tmp_path``; nothing outside the
test's temporary directory is touched.
"""

import json
import logging
from datetime import date, datetime, timezone
from io import StringIO

import pytest

from rotable_kernel.adapters.memory import InMemoryPersistence
from rotable_kernel.adapters.notifiers import RecordingNotifier
from rotable_kernel.adapters.sql import SqlAlchemyPersistence
from rotable_kernel.adapters.workbook import WorkbookPersistence
from rotable_kernel.db.engine import create_engine_from_url
from rotable_kernel.domain.clock import DeterministicClock
from rotable_kernel.domain.inspection import DEFAULT_STAGE_CATALOG, QAChecklistItem
from rotable_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from rotable_kernel.services.lifecycle_kernel import LifecycleKernel

TEST_MECHANIC = "Budi Santoso"
TEST_GL = "Agus (GL)"
TEST_PLANNER = "Rina (Planner)"

FIXED_TIME = datetime(2024, 3, 4, 8, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture rotable_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, kernel):
            kernel.receive_component("CMP-1", "Idler")
            logs = captured_logs()
            assert any(r["message"] == "component_received" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("rotable_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Kernel fixtures
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(FIXED_TIME)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def memory_store():
    return InMemoryPersistence()


@pytest.fixture
def kernel(memory_store, notifier, clock):
    """Kernel over a fresh in-memory store."""
    return LifecycleKernel(memory_store, notifier=notifier, clock=clock)


@pytest.fixture
def sql_store(tmp_path):
    engine = create_engine_from_url(f"sqlite:///{tmp_path / 'rotables.db'}")
    yield SqlAlchemyPersistence.from_engine(engine)
    engine.dispose()


@pytest.fixture
def workbook_store(tmp_path):
    return WorkbookPersistence(tmp_path / "rotables.xlsx")


@pytest.fixture(params=["memory", "sql", "workbook"])
def any_store(request, tmp_path):
    """Every persistence adapter, one per parametrized run."""
    if request.param == "memory":
        yield InMemoryPersistence()
    elif request.param == "sql":
        engine = create_engine_from_url(f"sqlite:///{tmp_path / 'rotables.db'}")
        yield SqlAlchemyPersistence.from_engine(engine)
        engine.dispose()
    else:
        yield WorkbookPersistence(tmp_path / "rotables.xlsx")


@pytest.fixture
def any_kernel(any_store, notifier, clock):
    return LifecycleKernel(any_store, notifier=notifier, clock=clock)


# =============================================================================
# Lifecycle helpers
# =============================================================================


def full_checklist(stage: int, checked: bool = True) -> tuple[QAChecklistItem, ...]:
    """The default template for ``stage`` with every item ticked."""
    definition = DEFAULT_STAGE_CATALOG.get(stage)
    return tuple(
        QAChecklistItem(id=item.id, label=item.label, checked=checked)
        for item in definition.blank_checklist()
    )


def receive_and_register(kernel, component_id="CMP-2024-001", component_type="Track Roller"):
    """Receive a component and send it to QA-1."""
    kernel.receive_component(
        component_id,
        component_type,
        serial_number=f"SN-{component_id}",
        date_received=date(2024, 3, 1),
        from_unit_id="EX-2200-017",
    ).unwrap()
    return kernel.confirm_registration(component_id, actor=TEST_MECHANIC).unwrap()


def pass_stages(kernel, component_id, first=1, last=7):
    """Complete QA stages ``first``..``last`` with full checklists."""
    for stage in range(first, last + 1):
        kernel.complete_stage(
            component_id, stage, TEST_MECHANIC, checklist_items=full_checklist(stage),
        ).unwrap()
    return kernel.selector.component(component_id)


def make_rfu(kernel, component_id="CMP-2024-001", component_type="Track Roller"):
    """Receive a component and pass it through all seven stages."""
    receive_and_register(kernel, component_id, component_type)
    return pass_stages(kernel, component_id)


@pytest.fixture
def rfu_component(kernel):
    return make_rfu(kernel)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as exercising real timeouts or threads"
    )
