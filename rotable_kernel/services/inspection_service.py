"""
InspectionService -- QA Stage Controller.

Responsibility:
    Runs the seven-stage inspection: validates and stamps stage sign-offs,
    advances the component one stage at a time, and opens fabrication
    requests for parts that must go to an outside vendor.

Architecture position:
    Kernel > Services.  Uses ``domain.inspection`` for checklist rules,
    ``domain.fabrication`` for the request record, and ``TransitionService``
    for every status change.

Invariants enforced:
    - Only the component's current stage can be completed.
    - A stage completes only with every checklist item checked and every
      template label present.
    - One QARecord per (component, stage); re-inspection overwrites it and
      keeps its id.
    - The QA record is written before the status change; the fabrication
      request after it, so the version check decides racing requests.
    - At most one open fabrication request per component.

Failure modes:
    - UnknownStageError, StageOutOfOrderError, ChecklistIncompleteError.
    - AlreadyHasOpenRequestError; InvalidTransitionError when a request is
      made outside ``qa-1``.
    - Port errors pass through unchanged, except a failed request write
      after the status change, which becomes PartialCommitError.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from rotable_kernel.domain.clock import Clock
from rotable_kernel.domain.component import ComponentStatus
from rotable_kernel.domain.fabrication import FabricationReason, FabricationRequest
from rotable_kernel.domain.inspection import (
    DEFAULT_STAGE_CATALOG,
    QAChecklistItem,
    QARecord,
    StageCatalog,
    complete_record,
    pending_record,
    unchecked_labels,
)
from rotable_kernel.domain.lifecycle import LifecycleEvent, TransitionPayload
from rotable_kernel.domain.ports import PersistencePort
from rotable_kernel.exceptions import (
    AlreadyHasOpenRequestError,
    ChecklistIncompleteError,
    StageOutOfOrderError,
    UnknownStageError,
)
from rotable_kernel.logging_config import LogContext, get_logger
from rotable_kernel.services.base import BaseService, kernel_operation
from rotable_kernel.services.transition_service import TransitionService

logger = get_logger("services.inspection")

# Statuses in which every stage of the current pass has been signed off
_FULLY_INSPECTED = frozenset({ComponentStatus.RFU, ComponentStatus.INSTALLED})


class InspectionService(BaseService):
    """QA stage sign-off and fabrication hand-off."""

    def __init__(
        self,
        persistence: PersistencePort,
        transitions: TransitionService,
        clock: Clock | None = None,
        catalog: StageCatalog = DEFAULT_STAGE_CATALOG,
    ):
        super().__init__(persistence, clock)
        self._transitions = transitions
        self._catalog = catalog

    @property
    def catalog(self) -> StageCatalog:
        return self._catalog

    @kernel_operation("complete_stage")
    def complete_stage(
        self,
        component_id: str,
        stage: int,
        mechanic_name: str,
        notes: str = "",
        checklist_items: Iterable[QAChecklistItem] = (),
    ) -> QARecord:
        """Sign off ``stage`` and advance the component to the next stage."""
        with LogContext.bind(component_id=component_id, actor_id=mechanic_name):
            definition = self._catalog.get(stage)
            if definition is None:
                raise UnknownStageError(stage)

            component = self._persistence.load(component_id)
            if component.current_qa_stage != stage:
                raise StageOutOfOrderError(
                    component_id=component.id,
                    stage=stage,
                    current_stage=component.current_qa_stage,
                )

            items = tuple(checklist_items)
            blocking = unchecked_labels(definition, items)
            if blocking:
                raise ChecklistIncompleteError(
                    component_id=component.id, stage=stage, unchecked=blocking,
                )

            existing = self._persistence.load_qa_record(component.id, stage)
            record = complete_record(
                existing or pending_record(component.id, definition),
                items,
                mechanic_name=mechanic_name,
                notes=notes,
                completed_at=self._clock.now(),
            )

            # Upsert first; a retry after a failed advance overwrites it
            self._persistence.save_qa_record(record)
            self._transitions.advance(
                component,
                LifecycleEvent.COMPLETE_STAGE,
                TransitionPayload(
                    stage_completed=record.is_completed,
                    actor=mechanic_name,
                    note=notes,
                ),
            )

            logger.info(
                "stage_completed",
                extra={
                    "component_id": component.id,
                    "stage": stage,
                    "stage_name": definition.name,
                    "reinspection": existing is not None,
                },
            )
            return record

    @kernel_operation("request_fabrication")
    def request_fabrication(
        self,
        component_id: str,
        reason: FabricationReason | str,
        vendor_name: str,
        estimated_cost: Decimal | int | str,
        requested_by: str,
        attachment: str | None = None,
    ) -> FabricationRequest:
        """Open a fabrication request and send the component for GL approval."""
        with LogContext.bind(component_id=component_id, actor_id=requested_by):
            component = self._persistence.load(component_id)
            open_request = self._persistence.load_open_fabrication_request(component.id)
            if open_request is not None:
                raise AlreadyHasOpenRequestError(component.id, str(open_request.id))

            request = FabricationRequest(
                component_id=component.id,
                component_type=component.type,
                reason=FabricationReason(reason),
                vendor_name=vendor_name,
                estimated_cost=Decimal(estimated_cost),
                created_by=requested_by,
                created_at=self._clock.now(),
                attachment=attachment,
            )

            saved = self._transitions.advance(
                component,
                LifecycleEvent.REQUEST_FABRICATION,
                TransitionPayload(
                    actor=requested_by,
                    note=f"Reason: {request.reason.value}, vendor: {vendor_name}",
                ),
            )
            self._transitions.follow_up(
                saved,
                f"fabrication request {request.id}",
                lambda: self._persistence.save_fabrication_request(request),
            )

            logger.info(
                "fabrication_requested",
                extra={
                    "component_id": component.id,
                    "request_id": request.id,
                    "reason": request.reason.value,
                    "estimated_cost": request.estimated_cost,
                },
            )
            return request

    @kernel_operation("stage_records")
    def stage_records(self, component_id: str) -> list[QARecord]:
        """The seven stages of the current inspection pass.

        A stored record counts for the current pass only if its stage is
        already behind the component; stages at or ahead of the current
        stage show a blank pending record, even when an earlier pass left a
        completed one behind.
        """
        component = self._persistence.load(component_id)
        stored = {r.stage: r for r in self._persistence.list_qa_records(component.id)}

        current = component.current_qa_stage
        if component.status in _FULLY_INSPECTED:
            done_below = len(self._catalog.stages) + 1
        elif current is not None:
            done_below = current
        else:
            done_below = 1

        records = []
        for definition in self._catalog:
            record = stored.get(definition.stage)
            if record is not None and definition.stage < done_below:
                records.append(record)
            else:
                records.append(pending_record(component.id, definition))
        return records
