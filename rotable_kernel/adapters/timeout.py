"""
Timeout-bounded persistence decorator.

Wraps any ``PersistencePort`` so every call is bounded by a wall-clock
timeout.  Calls run on a small worker pool; when the timeout elapses the
caller gets ``PersistenceTimeoutError`` and the kernel does not retry.

A call that times out may still complete in the background.  A late
component save is still version-checked, so it can never apply a second
status change.  A timed-out write that follows a saved status change is
reported by the kernel as PartialCommitError, since it may yet land.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, TypeVar
from uuid import UUID

from rotable_kernel.domain.component import Component
from rotable_kernel.domain.fabrication import FabricationRequest
from rotable_kernel.domain.inspection import QARecord
from rotable_kernel.domain.installation import InstallRecord
from rotable_kernel.domain.ports import PersistencePort
from rotable_kernel.domain.timeline import TimelineEvent
from rotable_kernel.exceptions import PersistenceTimeoutError
from rotable_kernel.logging_config import get_logger

logger = get_logger("adapters.timeout")

T = TypeVar("T")


class TimeoutBoundedPersistence:
    """Decorates a persistence port with a per-call timeout."""

    def __init__(
        self,
        inner: PersistencePort,
        timeout_seconds: float,
        max_workers: int = 4,
    ):
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds}")
        self._inner = inner
        self._timeout = timeout_seconds
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="rotable-persistence",
        )

    @property
    def inner(self) -> PersistencePort:
        return self._inner

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _call(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=self._timeout)
        except FutureTimeoutError:
            future.cancel()
            logger.warning(
                "persistence_timeout",
                extra={"operation": operation, "timeout_seconds": self._timeout},
            )
            raise PersistenceTimeoutError(operation, self._timeout) from None

    # -- Components ---------------------------------------------------------

    def load(self, component_id: str) -> Component:
        return self._call("load", self._inner.load, component_id)

    def list_components(self) -> list[Component]:
        return self._call("list_components", self._inner.list_components)

    def save(self, component: Component) -> Component:
        return self._call("save", self._inner.save, component)

    # -- QA records ---------------------------------------------------------

    def load_qa_record(self, component_id: str, stage: int) -> QARecord | None:
        return self._call("load_qa_record", self._inner.load_qa_record, component_id, stage)

    def save_qa_record(self, record: QARecord) -> None:
        return self._call("save_qa_record", self._inner.save_qa_record, record)

    def list_qa_records(self, component_id: str) -> list[QARecord]:
        return self._call("list_qa_records", self._inner.list_qa_records, component_id)

    # -- Fabrication requests -----------------------------------------------

    def load_fabrication_request(self, request_id: UUID) -> FabricationRequest:
        return self._call(
            "load_fabrication_request", self._inner.load_fabrication_request, request_id,
        )

    def load_open_fabrication_request(
        self, component_id: str,
    ) -> FabricationRequest | None:
        return self._call(
            "load_open_fabrication_request",
            self._inner.load_open_fabrication_request,
            component_id,
        )

    def save_fabrication_request(self, request: FabricationRequest) -> None:
        return self._call(
            "save_fabrication_request", self._inner.save_fabrication_request, request,
        )

    def list_fabrication_requests(
        self, component_id: str | None = None,
    ) -> list[FabricationRequest]:
        return self._call(
            "list_fabrication_requests",
            self._inner.list_fabrication_requests,
            component_id,
        )

    # -- Install records ----------------------------------------------------

    def load_install_record(self, record_id: UUID) -> InstallRecord:
        return self._call("load_install_record", self._inner.load_install_record, record_id)

    def load_open_install_record(self, component_id: str) -> InstallRecord | None:
        return self._call(
            "load_open_install_record", self._inner.load_open_install_record, component_id,
        )

    def save_install_record(self, record: InstallRecord) -> None:
        return self._call("save_install_record", self._inner.save_install_record, record)

    def list_install_records(self, component_id: str) -> list[InstallRecord]:
        return self._call(
            "list_install_records", self._inner.list_install_records, component_id,
        )

    # -- Timeline -----------------------------------------------------------

    def append_timeline_event(self, event: TimelineEvent) -> None:
        return self._call("append_timeline_event", self._inner.append_timeline_event, event)

    def list_timeline(self, component_id: str) -> list[TimelineEvent]:
        return self._call("list_timeline", self._inner.list_timeline, component_id)
