"""
Fabrication request state machine tests.

pending -> gl-approved -> planner-approved, or -> rejected from either
open step.  Each step is owned by exactly one role.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from rotable_kernel.domain.component import ComponentType
from rotable_kernel.domain.fabrication import (
    FABRICATION_TRANSITIONS,
    STEP_OWNER,
    TERMINAL_FABRICATION_STATUSES,
    ApprovalDecision,
    ApproverRole,
    FabricationReason,
    FabricationRequest,
    FabricationStatus,
    decide,
    lifecycle_event_for,
)
from rotable_kernel.domain.lifecycle import LifecycleEvent
from rotable_kernel.exceptions import (
    ApprovalAlreadyResolvedError,
    UnauthorizedApproverError,
)

T0 = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)
T1 = datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)


def _request(**overrides) -> FabricationRequest:
    fields = dict(
        component_id="CMP-2024-001",
        component_type=ComponentType.FINAL_DRIVE,
        reason=FabricationReason.MAJOR_DAMAGE,
        vendor_name="PT Hydraulic Works",
        estimated_cost=Decimal("18500000.00"),
        created_by="Budi",
        created_at=T0,
    )
    fields.update(overrides)
    return FabricationRequest(**fields)


class TestStatusMachine:

    def test_terminal_statuses(self):
        assert TERMINAL_FABRICATION_STATUSES == {
            FabricationStatus.PLANNER_APPROVED,
            FabricationStatus.REJECTED,
        }

    def test_every_status_declared(self):
        assert set(FABRICATION_TRANSITIONS) == set(FabricationStatus)

    def test_step_owners(self):
        assert STEP_OWNER == {
            FabricationStatus.PENDING: ApproverRole.GL,
            FabricationStatus.GL_APPROVED: ApproverRole.PLANNER,
        }

    def test_lifecycle_events(self):
        assert lifecycle_event_for(FabricationStatus.GL_APPROVED) is LifecycleEvent.GL_APPROVE
        assert lifecycle_event_for(FabricationStatus.PLANNER_APPROVED) is LifecycleEvent.PLANNER_APPROVE
        assert lifecycle_event_for(FabricationStatus.REJECTED) is LifecycleEvent.REJECT_FABRICATION


class TestRequest:

    def test_new_request_is_open_and_pending(self):
        request = _request()
        assert request.status is FabricationStatus.PENDING
        assert request.is_open
        assert request.decisions == ()

    def test_negative_cost_rejected(self):
        with pytest.raises(ValueError):
            _request(estimated_cost=Decimal("-1"))

    def test_zero_cost_allowed(self):
        assert _request(estimated_cost=Decimal("0")).estimated_cost == 0


class TestDecide:

    def test_full_approval_chain(self):
        gl = decide(_request(), ApprovalDecision.APPROVE, "Agus", ApproverRole.GL, T0)
        planner = decide(gl, ApprovalDecision.APPROVE, "Rina", ApproverRole.PLANNER, T1, "Go")

        assert gl.status is FabricationStatus.GL_APPROVED
        assert planner.status is FabricationStatus.PLANNER_APPROVED
        assert not planner.is_open
        assert [d.approver for d in planner.decisions] == ["Agus", "Rina"]
        assert planner.decisions[1].decided_at == T1
        assert planner.decisions[1].comment == "Go"

    @pytest.mark.parametrize("approved_by_gl", [False, True])
    def test_reject_from_either_open_step(self, approved_by_gl):
        request = _request()
        role = ApproverRole.GL
        if approved_by_gl:
            request = decide(request, ApprovalDecision.APPROVE, "Agus", ApproverRole.GL, T0)
            role = ApproverRole.PLANNER

        rejected = decide(request, ApprovalDecision.REJECT, "Someone", role, T1, "Too costly")
        assert rejected.status is FabricationStatus.REJECTED
        assert rejected.decisions[-1].decision is ApprovalDecision.REJECT

    def test_planner_cannot_decide_pending(self):
        with pytest.raises(UnauthorizedApproverError) as exc_info:
            decide(_request(), ApprovalDecision.APPROVE, "Rina", ApproverRole.PLANNER, T0)
        assert exc_info.value.status == "pending"
        assert exc_info.value.code == "UNAUTHORIZED_APPROVER"

    def test_gl_cannot_decide_twice(self):
        gl = decide(_request(), ApprovalDecision.APPROVE, "Agus", ApproverRole.GL, T0)
        with pytest.raises(UnauthorizedApproverError):
            decide(gl, ApprovalDecision.APPROVE, "Agus", ApproverRole.GL, T1)

    @pytest.mark.parametrize("decision", list(ApprovalDecision))
    def test_terminal_request_cannot_be_decided(self, decision):
        rejected = decide(_request(), ApprovalDecision.REJECT, "Agus", ApproverRole.GL, T0)
        with pytest.raises(ApprovalAlreadyResolvedError) as exc_info:
            decide(rejected, decision, "Rina", ApproverRole.PLANNER, T1)
        assert exc_info.value.status == "rejected"

    def test_decide_does_not_mutate_input(self):
        request = _request()
        decide(request, ApprovalDecision.APPROVE, "Agus", ApproverRole.GL, T0)
        assert request.status is FabricationStatus.PENDING
        assert request.decisions == ()
