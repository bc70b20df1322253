"""Persistence and notification adapters implementing the kernel ports."""

from rotable_kernel.adapters.memory import InMemoryPersistence
from rotable_kernel.adapters.notifiers import (
    LoggingNotifier,
    NullNotifier,
    RecordingNotifier,
)
from rotable_kernel.adapters.sql import SqlAlchemyPersistence
from rotable_kernel.adapters.timeout import TimeoutBoundedPersistence
from rotable_kernel.adapters.workbook import WorkbookPersistence

__all__ = [
    "InMemoryPersistence",
    "LoggingNotifier",
    "NullNotifier",
    "RecordingNotifier",
    "SqlAlchemyPersistence",
    "TimeoutBoundedPersistence",
    "WorkbookPersistence",
]
