"""
Module: rotable_kernel.models.fabrication
Responsibility: ORM persistence for fabrication requests and their approval
    decisions.

Architecture position: Kernel > Models.  May import from db/base.py and
    exceptions.py only.

Invariants enforced:
    - Request status limited to pending, gl-approved, planner-approved and
      rejected by a check constraint.  Transition rules are enforced in the
      domain layer.
    - Decisions are append-only: ORM listeners reject UPDATE and DELETE.
    - ``position`` orders decisions in the order they were made.

Failure modes:
    - ImmutabilityViolationError on decision UPDATE/DELETE.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rotable_kernel.db.base import Base, UUIDString
from rotable_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from rotable_kernel.domain.fabrication import (
        ApprovalDecisionRecord,
        FabricationRequest,
    )


class FabricationRequestModel(Base):
    """Persistent outsourced repair request."""

    __tablename__ = "fabrication_requests"

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'gl-approved', 'planner-approved', 'rejected')",
            name="ck_fabrication_requests_valid_status",
        ),
        CheckConstraint(
            "estimated_cost >= 0", name="ck_fabrication_requests_cost",
        ),
        Index("ix_fabrication_requests_component_status", "component_id", "status"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)
    component_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("components.id"), nullable=False,
    )
    component_type: Mapped[str] = mapped_column(String(40), nullable=False)
    reason: Mapped[str] = mapped_column(String(40), nullable=False)
    vendor_name: Mapped[str] = mapped_column(String(200), nullable=False)
    estimated_cost: Mapped[Decimal] = mapped_column(nullable=False)
    created_by: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(40), nullable=False, default="pending")
    attachment: Mapped[str | None] = mapped_column(String(500), nullable=True)

    decisions: Mapped[list[FabricationDecisionModel]] = relationship(
        "FabricationDecisionModel",
        back_populates="request",
        order_by="FabricationDecisionModel.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<FabricationRequest {self.id} component={self.component_id} "
            f"status={self.status}>"
        )

    def to_dto(self) -> FabricationRequest:
        """Convert ORM model to frozen domain object."""
        from rotable_kernel.domain.component import ComponentType
        from rotable_kernel.domain.fabrication import (
            FabricationReason,
            FabricationRequest,
            FabricationStatus,
        )

        return FabricationRequest(
            id=self.id,
            component_id=self.component_id,
            component_type=ComponentType(self.component_type),
            reason=FabricationReason(self.reason),
            vendor_name=self.vendor_name,
            estimated_cost=self.estimated_cost,
            created_by=self.created_by,
            created_at=self.created_at,
            status=FabricationStatus(self.status),
            attachment=self.attachment,
            decisions=tuple(d.to_dto() for d in self.decisions),
        )

    @classmethod
    def from_dto(cls, dto: FabricationRequest) -> FabricationRequestModel:
        """Create ORM model from domain object (decisions are added separately)."""
        return cls(
            id=dto.id,
            component_id=dto.component_id,
            component_type=dto.component_type.value,
            reason=dto.reason.value,
            vendor_name=dto.vendor_name,
            estimated_cost=dto.estimated_cost,
            created_by=dto.created_by,
            created_at=dto.created_at,
            status=dto.status.value,
            attachment=dto.attachment,
        )


class FabricationDecisionModel(Base):
    """Persistent approval decision. Append-only."""

    __tablename__ = "fabrication_decisions"

    __table_args__ = (
        UniqueConstraint("request_id", "position", name="uq_fabrication_decisions_position"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)
    request_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("fabrication_requests.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    approver: Mapped[str] = mapped_column(String(200), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    decision: Mapped[str] = mapped_column(String(20), nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    decided_at: Mapped[datetime] = mapped_column(nullable=False)

    request: Mapped[FabricationRequestModel] = relationship(
        "FabricationRequestModel", back_populates="decisions",
    )

    def __repr__(self) -> str:
        return (
            f"<FabricationDecision {self.id} request={self.request_id} "
            f"{self.role}:{self.decision}>"
        )

    def to_dto(self) -> ApprovalDecisionRecord:
        """Convert ORM model to frozen domain object."""
        from rotable_kernel.domain.fabrication import (
            ApprovalDecision,
            ApprovalDecisionRecord,
            ApproverRole,
        )

        return ApprovalDecisionRecord(
            id=self.id,
            approver=self.approver,
            role=ApproverRole(self.role),
            decision=ApprovalDecision(self.decision),
            decided_at=self.decided_at,
            comment=self.comment,
        )

    @classmethod
    def from_dto(
        cls, dto: ApprovalDecisionRecord, request_id: UUID, position: int,
    ) -> FabricationDecisionModel:
        """Create ORM model from domain object."""
        return cls(
            id=dto.id,
            request_id=request_id,
            position=position,
            approver=dto.approver,
            role=dto.role.value,
            decision=dto.decision.value,
            comment=dto.comment,
            decided_at=dto.decided_at,
        )


# =============================================================================
# ORM-Level Immutability for Decisions (Append-Only)
# =============================================================================


@event.listens_for(FabricationDecisionModel, "before_update")
def prevent_decision_update(mapper, connection, target):
    """Prevent updates to approval decision records."""
    raise ImmutabilityViolationError(
        entity_type="FabricationDecision",
        entity_id=str(target.id),
        reason="Approval decisions are immutable -- cannot modify",
    )


@event.listens_for(FabricationDecisionModel, "before_delete")
def prevent_decision_delete(mapper, connection, target):
    """Prevent deletion of approval decision records."""
    raise ImmutabilityViolationError(
        entity_type="FabricationDecision",
        entity_id=str(target.id),
        reason="Approval decisions are immutable -- cannot delete",
    )
