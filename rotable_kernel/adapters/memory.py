"""
In-memory persistence adapter.

Dict-backed implementation of ``PersistencePort`` for tests and local
experiments.  Domain objects are frozen, so they are stored as-is.  One
lock serializes every call, which makes each call atomic and the
component compare-and-swap race-free.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from uuid import UUID

from rotable_kernel.domain.component import Component
from rotable_kernel.domain.fabrication import FabricationRequest
from rotable_kernel.domain.inspection import QARecord
from rotable_kernel.domain.installation import InstallRecord
from rotable_kernel.domain.timeline import TimelineEvent
from rotable_kernel.exceptions import (
    ConcurrentModificationError,
    DuplicateComponentError,
    ImmutabilityViolationError,
    NotFoundError,
)
from rotable_kernel.logging_config import get_logger

logger = get_logger("adapters.memory")


class InMemoryPersistence:
    """Process-local store. Not shared between instances."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._components: dict[str, Component] = {}
        self._qa_records: dict[tuple[str, int], QARecord] = {}
        self._requests: dict[UUID, FabricationRequest] = {}
        self._installs: dict[UUID, InstallRecord] = {}
        self._timeline: dict[UUID, TimelineEvent] = {}

    # -- Components ---------------------------------------------------------

    def load(self, component_id: str) -> Component:
        with self._lock:
            try:
                return self._components[component_id]
            except KeyError:
                raise NotFoundError("Component", component_id) from None

    def list_components(self) -> list[Component]:
        with self._lock:
            return sorted(self._components.values(), key=lambda c: c.id)

    def save(self, component: Component) -> Component:
        with self._lock:
            stored = self._components.get(component.id)
            if component.version == 0:
                if stored is not None:
                    raise DuplicateComponentError(component.id)
            elif stored is None:
                raise NotFoundError("Component", component.id)
            elif stored.version != component.version:
                logger.info(
                    "component_version_conflict",
                    extra={
                        "component_id": component.id,
                        "expected_version": component.version,
                        "stored_version": stored.version,
                    },
                )
                raise ConcurrentModificationError(
                    "Component", component.id, component.version,
                )
            saved = replace(component, version=component.version + 1)
            self._components[component.id] = saved
            return saved

    # -- QA records ---------------------------------------------------------

    def load_qa_record(self, component_id: str, stage: int) -> QARecord | None:
        with self._lock:
            return self._qa_records.get((component_id, stage))

    def save_qa_record(self, record: QARecord) -> None:
        with self._lock:
            self._qa_records[(record.component_id, record.stage)] = record

    def list_qa_records(self, component_id: str) -> list[QARecord]:
        with self._lock:
            return sorted(
                (r for (cid, _), r in self._qa_records.items() if cid == component_id),
                key=lambda r: r.stage,
            )

    # -- Fabrication requests -----------------------------------------------

    def load_fabrication_request(self, request_id: UUID) -> FabricationRequest:
        with self._lock:
            try:
                return self._requests[request_id]
            except KeyError:
                raise NotFoundError("FabricationRequest", str(request_id)) from None

    def load_open_fabrication_request(
        self, component_id: str,
    ) -> FabricationRequest | None:
        with self._lock:
            for request in self._requests.values():
                if request.component_id == component_id and request.is_open:
                    return request
            return None

    def save_fabrication_request(self, request: FabricationRequest) -> None:
        with self._lock:
            self._requests[request.id] = request

    def list_fabrication_requests(
        self, component_id: str | None = None,
    ) -> list[FabricationRequest]:
        with self._lock:
            return [
                r for r in self._requests.values()
                if component_id is None or r.component_id == component_id
            ]

    # -- Install records ----------------------------------------------------

    def load_install_record(self, record_id: UUID) -> InstallRecord:
        with self._lock:
            try:
                return self._installs[record_id]
            except KeyError:
                raise NotFoundError("InstallRecord", str(record_id)) from None

    def load_open_install_record(self, component_id: str) -> InstallRecord | None:
        with self._lock:
            for record in self._installs.values():
                if record.component_id == component_id and record.is_open:
                    return record
            return None

    def save_install_record(self, record: InstallRecord) -> None:
        with self._lock:
            self._installs[record.id] = record

    def list_install_records(self, component_id: str) -> list[InstallRecord]:
        with self._lock:
            return [r for r in self._installs.values() if r.component_id == component_id]

    # -- Timeline -----------------------------------------------------------

    def append_timeline_event(self, event: TimelineEvent) -> None:
        with self._lock:
            if event.id in self._timeline:
                raise ImmutabilityViolationError(
                    entity_type="TimelineEvent",
                    entity_id=str(event.id),
                    reason="Timeline entries are append-only -- cannot overwrite",
                )
            self._timeline[event.id] = event

    def list_timeline(self, component_id: str) -> list[TimelineEvent]:
        with self._lock:
            return [e for e in self._timeline.values() if e.component_id == component_id]
