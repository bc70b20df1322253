"""
Kernel ports (``rotable_kernel.domain.ports``).

Responsibility
--------------
Protocols for the two external collaborators the kernel calls into: the
persistence store and the notification sink.  Concrete implementations
live in ``rotable_kernel.adapters`` and are injected at construction.

Contract
--------
* Every persistence call is atomic on its own.
* ``save`` is a compare-and-swap on ``Component.version``:

  - version 0 inserts a new component (``DuplicateComponentError`` if the
    id is taken);
  - otherwise the stored version must equal ``component.version``
    (``ConcurrentModificationError`` if not, ``NotFoundError`` if the id
    is unknown).

  It returns the stored copy carrying ``version + 1``.
* ``load*`` methods raise ``NotFoundError`` for unknown ids; the
  ``load_qa_record`` and ``load_open_*`` lookups return None instead.
* ``append_timeline_event`` never overwrites; re-appending an id raises
  ``ImmutabilityViolationError``.
* ``notify`` is fire-and-forget.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from rotable_kernel.domain.component import Component
from rotable_kernel.domain.fabrication import FabricationRequest
from rotable_kernel.domain.inspection import QARecord
from rotable_kernel.domain.installation import InstallRecord
from rotable_kernel.domain.timeline import TimelineEvent


@runtime_checkable
class PersistencePort(Protocol):
    """Opaque store for components and their dependent records."""

    # Components
    def load(self, component_id: str) -> Component: ...

    def list_components(self) -> list[Component]: ...

    def save(self, component: Component) -> Component: ...

    # QA records
    def load_qa_record(self, component_id: str, stage: int) -> QARecord | None: ...

    def save_qa_record(self, record: QARecord) -> None: ...

    def list_qa_records(self, component_id: str) -> list[QARecord]: ...

    # Fabrication requests
    def load_fabrication_request(self, request_id: UUID) -> FabricationRequest: ...

    def load_open_fabrication_request(
        self, component_id: str,
    ) -> FabricationRequest | None: ...

    def save_fabrication_request(self, request: FabricationRequest) -> None: ...

    def list_fabrication_requests(
        self, component_id: str | None = None,
    ) -> list[FabricationRequest]: ...

    # Install records
    def load_install_record(self, record_id: UUID) -> InstallRecord: ...

    def load_open_install_record(self, component_id: str) -> InstallRecord | None: ...

    def save_install_record(self, record: InstallRecord) -> None: ...

    def list_install_records(self, component_id: str) -> list[InstallRecord]: ...

    # Timeline
    def append_timeline_event(self, event: TimelineEvent) -> None: ...

    def list_timeline(self, component_id: str) -> list[TimelineEvent]: ...


@runtime_checkable
class NotificationPort(Protocol):
    """Sink for user-facing notices."""

    def notify(self, event_kind: str, message: str) -> None: ...
