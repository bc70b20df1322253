"""
Notification adapters.

``notify`` is fire-and-forget: the kernel logs and ignores a failing
notifier, so these adapters never need to be reliable.
"""

from __future__ import annotations

import threading

from rotable_kernel.logging_config import get_logger

logger = get_logger("adapters.notifiers")


class LoggingNotifier:
    """Emits each notice as a structured log line."""

    def notify(self, event_kind: str, message: str) -> None:
        logger.info(
            "notification",
            extra={"event_kind": event_kind, "notice": message},
        )


class RecordingNotifier:
    """Keeps every notice in memory (tests)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._notices: list[tuple[str, str]] = []

    def notify(self, event_kind: str, message: str) -> None:
        with self._lock:
            self._notices.append((event_kind, message))

    @property
    def notices(self) -> list[tuple[str, str]]:
        with self._lock:
            return list(self._notices)

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.notices]

    def clear(self) -> None:
        with self._lock:
            self._notices.clear()


class NullNotifier:
    """Discards every notice."""

    def notify(self, event_kind: str, message: str) -> None:
        return None
