"""
Module: rotable_kernel.selectors.component_selector
Responsibility: Read-only queries behind the workshop dashboard, the
    component timeline, install history, RFU stock and the QA and approval
    queues.
Architecture position: Kernel > Selectors.  Reads through the persistence
    port only.  Selectors NEVER create, modify or delete data.

Invariants enforced:
    - Derived, never stored: every count is recomputed from components on
      each call.
    - Timeline entries come back newest first; entries with the same
      timestamp keep reverse append order.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from rotable_kernel.domain.component import (
    APPROVAL_STATUSES,
    Component,
    ComponentStatus,
)
from rotable_kernel.domain.fabrication import FabricationRequest
from rotable_kernel.domain.installation import InstallRecord
from rotable_kernel.domain.ports import PersistencePort
from rotable_kernel.domain.timeline import TimelineEvent

# Statuses listed on the QA tracker board
_QA_QUEUE_STATUSES = frozenset({
    ComponentStatus.RECEIVED,
    ComponentStatus.REGISTERED,
    ComponentStatus.WAITING_REPAIR,
}) | frozenset(ComponentStatus.for_qa_stage(n) for n in range(1, 8))


@dataclass(frozen=True)
class DashboardStats:
    """Headline counts for the workshop dashboard."""

    total_in_workshop: int
    rfu_stock: int
    in_qa: int
    awaiting_approval: int
    in_vendor_repair: int
    installed: int
    by_stage: dict[int, int]


class ComponentSelector:
    """
    Read model over the persistence port.

    Contract:
        Every method is a pure read; results are frozen domain objects or
        computed DTOs.
    """

    def __init__(self, persistence: PersistencePort):
        self._persistence = persistence

    def dashboard_stats(self) -> DashboardStats:
        components = self._persistence.list_components()
        counts = Counter(c.status for c in components)
        by_stage = {
            stage: counts[ComponentStatus.for_qa_stage(stage)] for stage in range(1, 8)
        }
        return DashboardStats(
            total_in_workshop=sum(
                n for status, n in counts.items() if status is not ComponentStatus.INSTALLED
            ),
            rfu_stock=counts[ComponentStatus.RFU],
            in_qa=sum(by_stage.values()),
            awaiting_approval=sum(counts[s] for s in APPROVAL_STATUSES),
            in_vendor_repair=counts[ComponentStatus.VENDOR_REPAIR],
            installed=counts[ComponentStatus.INSTALLED],
            by_stage=by_stage,
        )

    def component(self, component_id: str) -> Component:
        return self._persistence.load(component_id)

    def timeline(self, component_id: str) -> list[TimelineEvent]:
        """Timeline entries, newest first."""
        events = list(reversed(self._persistence.list_timeline(component_id)))
        # sort is stable, so equal timestamps keep reverse append order
        return sorted(events, key=lambda e: e.date, reverse=True)

    def install_history(self, component_id: str) -> list[InstallRecord]:
        """Install records, most recent installation first."""
        records = list(reversed(self._persistence.list_install_records(component_id)))
        return sorted(records, key=lambda r: r.install_date, reverse=True)

    def rfu_stock(self, search: str | None = None) -> list[Component]:
        """RFU components, optionally filtered by id, type or serial number."""
        stock = [
            c for c in self._persistence.list_components()
            if c.status is ComponentStatus.RFU
        ]
        if not search:
            return stock
        needle = search.casefold()
        return [
            c for c in stock
            if needle in c.id.casefold()
            or needle in c.type.value.casefold()
            or needle in c.serial_number.casefold()
        ]

    def qa_queue(self, status: ComponentStatus | str | None = None) -> list[Component]:
        """Components on the QA board, optionally narrowed to one status."""
        if status is not None:
            wanted = frozenset({ComponentStatus(status)})
        else:
            wanted = _QA_QUEUE_STATUSES
        return [c for c in self._persistence.list_components() if c.status in wanted]

    def pending_approvals(self) -> list[FabricationRequest]:
        """Open fabrication requests, oldest first."""
        return [r for r in self._persistence.list_fabrication_requests() if r.is_open]
