"""
Fabrication request domain types (``rotable_kernel.domain.fabrication``).

Responsibility
--------------
Pure value objects for outsourced repair requests and their two-step
approval: first the GL, then the Planner.  Defines the request status
machine, the decision records and the pure ``decide`` function.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``FABRICATION_TRANSITIONS`` defines the only valid request status
  changes.  ``planner-approved`` and ``rejected`` are terminal.
* Each step has exactly one owning role: GL decides ``pending`` requests,
  the Planner decides ``gl-approved`` ones.
* Every decision is kept as an ``ApprovalDecisionRecord`` on the request.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from rotable_kernel.domain.component import ComponentType, blank_to_none
from rotable_kernel.domain.lifecycle import LifecycleEvent
from rotable_kernel.exceptions import (
    ApprovalAlreadyResolvedError,
    UnauthorizedApproverError,
)


# =========================================================================
# Request Status Lifecycle
# =========================================================================


class FabricationStatus(str, Enum):
    """Fabrication request lifecycle states."""

    PENDING = "pending"
    GL_APPROVED = "gl-approved"
    PLANNER_APPROVED = "planner-approved"
    REJECTED = "rejected"


FABRICATION_TRANSITIONS: dict[FabricationStatus, frozenset[FabricationStatus]] = {
    FabricationStatus.PENDING: frozenset({
        FabricationStatus.GL_APPROVED,
        FabricationStatus.REJECTED,
    }),
    FabricationStatus.GL_APPROVED: frozenset({
        FabricationStatus.PLANNER_APPROVED,
        FabricationStatus.REJECTED,
    }),
    FabricationStatus.PLANNER_APPROVED: frozenset(),
    FabricationStatus.REJECTED: frozenset(),
}

TERMINAL_FABRICATION_STATUSES: frozenset[FabricationStatus] = frozenset(
    status for status, targets in FABRICATION_TRANSITIONS.items() if not targets
)


class FabricationReason(str, Enum):
    """Why the workshop cannot repair the part in-house."""

    NO_TOOLS = "no-tools"
    MAJOR_DAMAGE = "major-damage"
    SPECIALIZED = "specialized"
    WARRANTY = "warranty"


class ApproverRole(str, Enum):
    GL = "gl"
    PLANNER = "planner"


class ApprovalDecision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


# The role allowed to decide a request in each open status
STEP_OWNER: dict[FabricationStatus, ApproverRole] = {
    FabricationStatus.PENDING: ApproverRole.GL,
    FabricationStatus.GL_APPROVED: ApproverRole.PLANNER,
}

_APPROVE_TARGET: dict[FabricationStatus, FabricationStatus] = {
    FabricationStatus.PENDING: FabricationStatus.GL_APPROVED,
    FabricationStatus.GL_APPROVED: FabricationStatus.PLANNER_APPROVED,
}

_LIFECYCLE_EVENT_FOR: dict[FabricationStatus, LifecycleEvent] = {
    FabricationStatus.GL_APPROVED: LifecycleEvent.GL_APPROVE,
    FabricationStatus.PLANNER_APPROVED: LifecycleEvent.PLANNER_APPROVE,
    FabricationStatus.REJECTED: LifecycleEvent.REJECT_FABRICATION,
}


# =========================================================================
# Request and Decision Records
# =========================================================================


@dataclass(frozen=True)
class ApprovalDecisionRecord:
    """Record of a single approval decision. Immutable."""

    approver: str
    role: ApproverRole
    decision: ApprovalDecision
    decided_at: datetime
    comment: str = ""
    id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class FabricationRequest:
    """Immutable snapshot of an outsourced repair request."""

    component_id: str
    component_type: ComponentType
    reason: FabricationReason
    vendor_name: str
    estimated_cost: Decimal
    created_by: str
    created_at: datetime
    status: FabricationStatus = FabricationStatus.PENDING
    attachment: str | None = None
    decisions: tuple[ApprovalDecisionRecord, ...] = ()
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if self.estimated_cost < 0:
            raise ValueError(
                f"estimated_cost must be >= 0, got {self.estimated_cost}"
            )
        object.__setattr__(self, "attachment", blank_to_none(self.attachment))

    @property
    def is_open(self) -> bool:
        return self.status not in TERMINAL_FABRICATION_STATUSES


# =========================================================================
# Pure Operations
# =========================================================================


def decide(
    request: FabricationRequest,
    decision: ApprovalDecision,
    approver: str,
    role: ApproverRole,
    decided_at: datetime,
    comment: str = "",
) -> FabricationRequest:
    """Apply one approval decision and return the updated request.

    Raises:
        ApprovalAlreadyResolvedError: The request is terminal.
        UnauthorizedApproverError: ``role`` does not own the current step.
    """
    if not request.is_open:
        raise ApprovalAlreadyResolvedError(
            request_id=str(request.id), status=request.status.value,
        )
    owner = STEP_OWNER[request.status]
    if role is not owner:
        raise UnauthorizedApproverError(
            request_id=str(request.id),
            approver=approver,
            role=role.value,
            status=request.status.value,
        )

    if decision is ApprovalDecision.APPROVE:
        new_status = _APPROVE_TARGET[request.status]
    else:
        new_status = FabricationStatus.REJECTED
    assert new_status in FABRICATION_TRANSITIONS[request.status]

    record = ApprovalDecisionRecord(
        approver=approver,
        role=role,
        decision=decision,
        decided_at=decided_at,
        comment=comment,
    )
    return replace(
        request,
        status=new_status,
        decisions=request.decisions + (record,),
    )


def lifecycle_event_for(status: FabricationStatus) -> LifecycleEvent:
    """The component lifecycle event that follows a request reaching ``status``."""
    return _LIFECYCLE_EVENT_FOR[status]
