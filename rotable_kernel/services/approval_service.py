"""
ApprovalService -- two-step fabrication approval.

Responsibility:
    Records GL and Planner decisions on fabrication requests and moves the
    component along with the request: GL approval sends it to planner
    approval, planner approval sends it to the vendor, and a rejection at
    either step returns it to ``qa-1``.

Architecture position:
    Kernel > Services.  Decision rules live in ``domain.fabrication``;
    status changes go through ``TransitionService``.

Invariants enforced:
    - GL decides ``pending`` requests, the Planner decides ``gl-approved``
      ones.  Nobody decides a terminal request.
    - Every decision is appended to the request, never edited.
    - The component is saved (version-checked) before the request, so two
      racing approvers cannot both succeed.

Failure modes:
    - ApprovalAlreadyResolvedError, UnauthorizedApproverError.
    - InvalidTransitionError if the component is not in the approval state
      the request implies.
    - NotFoundError for an unknown request id.
    - PartialCommitError when the request write fails after the status
      change was saved.
"""

from __future__ import annotations

from uuid import UUID

from rotable_kernel.domain.clock import Clock
from rotable_kernel.domain.fabrication import (
    ApprovalDecision,
    ApproverRole,
    FabricationRequest,
    decide,
    lifecycle_event_for,
)
from rotable_kernel.domain.lifecycle import TransitionPayload
from rotable_kernel.domain.ports import PersistencePort
from rotable_kernel.logging_config import LogContext, get_logger
from rotable_kernel.services.base import BaseService, kernel_operation
from rotable_kernel.services.transition_service import TransitionService

logger = get_logger("services.approval")


class ApprovalService(BaseService):
    """GL / Planner decisions on fabrication requests."""

    def __init__(
        self,
        persistence: PersistencePort,
        transitions: TransitionService,
        clock: Clock | None = None,
    ):
        super().__init__(persistence, clock)
        self._transitions = transitions

    @kernel_operation("approve")
    def approve(
        self,
        request_id: UUID,
        approver: str,
        role: ApproverRole | str,
        comment: str = "",
    ) -> FabricationRequest:
        """Approve the current step of a fabrication request."""
        return self._decide(request_id, ApprovalDecision.APPROVE, approver, role, comment)

    @kernel_operation("reject")
    def reject(
        self,
        request_id: UUID,
        approver: str,
        role: ApproverRole | str,
        comment: str = "",
    ) -> FabricationRequest:
        """Reject a fabrication request and send the component back to QA-1."""
        return self._decide(request_id, ApprovalDecision.REJECT, approver, role, comment)

    def _decide(
        self,
        request_id: UUID,
        decision: ApprovalDecision,
        approver: str,
        role: ApproverRole | str,
        comment: str,
    ) -> FabricationRequest:
        role = ApproverRole(role)
        with LogContext.bind(actor_id=approver):
            request = self._persistence.load_fabrication_request(request_id)
            with LogContext.bind(component_id=request.component_id):
                updated = decide(
                    request,
                    decision,
                    approver=approver,
                    role=role,
                    decided_at=self._clock.now(),
                    comment=comment,
                )

                component = self._persistence.load(request.component_id)
                saved = self._transitions.advance(
                    component,
                    lifecycle_event_for(updated.status),
                    TransitionPayload(actor=approver, note=comment),
                )
                self._transitions.follow_up(
                    saved,
                    f"decision on fabrication request {request.id}",
                    lambda: self._persistence.save_fabrication_request(updated),
                )

                logger.info(
                    "fabrication_decided",
                    extra={
                        "request_id": request.id,
                        "decision": decision.value,
                        "approver_role": role.value,
                        "from_request_status": request.status.value,
                        "to_request_status": updated.status.value,
                    },
                )
                return updated
