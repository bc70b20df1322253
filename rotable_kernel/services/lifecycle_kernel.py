"""
LifecycleKernel -- single call surface for the rotable kernel.

Responsibility:
    Wires the transition, inspection, approval and ledger services to one
    persistence port, clock and notifier, and exposes their public
    operations (and the read-side selector) from one object.

Architecture position:
    Kernel > Services.  Outer layers (CLI, web handlers, the config
    bridge) construct one LifecycleKernel per store and call into it.

Usage::

    kernel = LifecycleKernel(InMemoryPersistence())
    kernel.receive_component("CMP-2024-001", "Track Roller")
    result = kernel.confirm_registration("CMP-2024-001")
    if not result.is_ok:
        print(result.code)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from rotable_kernel.domain.clock import Clock, SystemClock
from rotable_kernel.domain.component import Component, ComponentType
from rotable_kernel.domain.fabrication import (
    ApproverRole,
    FabricationReason,
    FabricationRequest,
)
from rotable_kernel.domain.inspection import (
    DEFAULT_STAGE_CATALOG,
    QAChecklistItem,
    QARecord,
    StageCatalog,
)
from rotable_kernel.domain.installation import InstallRecord, LifetimeSummary
from rotable_kernel.domain.lifecycle import LifecycleEvent, TransitionPayload
from rotable_kernel.domain.ports import NotificationPort, PersistencePort
from rotable_kernel.domain.result import Result
from rotable_kernel.selectors.component_selector import ComponentSelector
from rotable_kernel.services.approval_service import ApprovalService
from rotable_kernel.services.inspection_service import InspectionService
from rotable_kernel.services.ledger_service import LedgerService
from rotable_kernel.services.transition_service import TransitionService


class LifecycleKernel:
    """Facade over the kernel services."""

    def __init__(
        self,
        persistence: PersistencePort,
        notifier: NotificationPort | None = None,
        clock: Clock | None = None,
        catalog: StageCatalog = DEFAULT_STAGE_CATALOG,
    ):
        self._persistence = persistence
        self._clock = clock or SystemClock()
        self.transitions = TransitionService(persistence, self._clock, notifier)
        self.inspection = InspectionService(
            persistence, self.transitions, self._clock, catalog,
        )
        self.approvals = ApprovalService(persistence, self.transitions, self._clock)
        self.ledger = LedgerService(persistence, self.transitions, self._clock)
        self.selector = ComponentSelector(persistence)

    @property
    def persistence(self) -> PersistencePort:
        return self._persistence

    @property
    def clock(self) -> Clock:
        return self._clock

    # -- Status transitions -------------------------------------------------

    def apply_transition(
        self,
        component_id: str,
        event: LifecycleEvent | str,
        payload: TransitionPayload | None = None,
    ) -> Result[Component]:
        return self.transitions.apply_transition(component_id, event, payload)

    def receive_component(
        self,
        component_id: str,
        component_type: ComponentType | str,
        **details,
    ) -> Result[Component]:
        return self.transitions.receive_component(component_id, component_type, **details)

    def confirm_registration(
        self, component_id: str, actor: str | None = None, note: str = "",
    ) -> Result[Component]:
        return self.transitions.confirm_registration(component_id, actor, note)

    def return_from_vendor(
        self, component_id: str, actor: str | None = None, note: str = "",
    ) -> Result[Component]:
        return self.transitions.return_from_vendor(component_id, actor, note)

    def hold_for_repair(
        self, component_id: str, actor: str | None = None, note: str = "",
    ) -> Result[Component]:
        return self.transitions.hold_for_repair(component_id, actor, note)

    def resume_repair(
        self, component_id: str, actor: str | None = None, note: str = "",
    ) -> Result[Component]:
        return self.transitions.resume_repair(component_id, actor, note)

    # -- QA -----------------------------------------------------------------

    def complete_stage(
        self,
        component_id: str,
        stage: int,
        mechanic_name: str,
        notes: str = "",
        checklist_items: Iterable[QAChecklistItem] = (),
    ) -> Result[QARecord]:
        return self.inspection.complete_stage(
            component_id, stage, mechanic_name, notes, checklist_items,
        )

    def stage_records(self, component_id: str) -> Result[list[QARecord]]:
        return self.inspection.stage_records(component_id)

    def request_fabrication(
        self,
        component_id: str,
        reason: FabricationReason | str,
        vendor_name: str,
        estimated_cost: Decimal | int | str,
        requested_by: str,
        attachment: str | None = None,
    ) -> Result[FabricationRequest]:
        return self.inspection.request_fabrication(
            component_id, reason, vendor_name, estimated_cost, requested_by, attachment,
        )

    # -- Approvals ----------------------------------------------------------

    def approve(
        self,
        request_id: UUID,
        approver: str,
        role: ApproverRole | str,
        comment: str = "",
    ) -> Result[FabricationRequest]:
        return self.approvals.approve(request_id, approver, role, comment)

    def reject(
        self,
        request_id: UUID,
        approver: str,
        role: ApproverRole | str,
        comment: str = "",
    ) -> Result[FabricationRequest]:
        return self.approvals.reject(request_id, approver, role, comment)

    # -- Ledger -------------------------------------------------------------

    def install(
        self,
        component_id: str,
        unit_id: str,
        hm_start: int,
        install_date: date | None = None,
        actor: str | None = None,
    ) -> Result[InstallRecord]:
        return self.ledger.install(component_id, unit_id, hm_start, install_date, actor)

    def remove(
        self,
        install_record_id: UUID,
        hm_end: int,
        remove_date: date | None = None,
        reason: str = "",
        actor: str | None = None,
    ) -> Result[InstallRecord]:
        return self.ledger.remove(install_record_id, hm_end, remove_date, reason, actor)

    def lifetime_summary(self, component_id: str) -> Result[LifetimeSummary]:
        return self.ledger.lifetime_summary(component_id)
