"""
Module: rotable_kernel.models.timeline
Responsibility: ORM persistence for the append-only component timeline.

Architecture position: Kernel > Models.  May import from db/base.py and
    exceptions.py only.

Invariants enforced:
    - Append-only: ORM listeners reject UPDATE and DELETE.
    - ``position`` preserves append order per component so entries with the
      same timestamp keep a stable order.

Failure modes:
    - ImmutabilityViolationError on UPDATE/DELETE.
    - IntegrityError on re-inserting an existing event id.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import CheckConstraint, Index, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from rotable_kernel.db.base import Base, UUIDString
from rotable_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from rotable_kernel.domain.timeline import TimelineEvent


class TimelineEventModel(Base):
    """Persistent audit log entry."""

    __tablename__ = "timeline_events"

    __table_args__ = (
        CheckConstraint(
            "type IN ('received', 'qa', 'repair', 'vendor', 'rfu', "
            "'installed', 'removed', 'fabrication', 'approval')",
            name="ck_timeline_events_valid_type",
        ),
        Index("ix_timeline_events_component", "component_id", "position"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)
    component_id: Mapped[str] = mapped_column(String(64), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[datetime] = mapped_column(nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(200), nullable=True)

    def __repr__(self) -> str:
        return f"<TimelineEvent {self.component_id} {self.type} {self.title!r}>"

    def to_dto(self) -> TimelineEvent:
        """Convert ORM model to frozen domain object."""
        from rotable_kernel.domain.timeline import TimelineEvent, TimelineEventType

        return TimelineEvent(
            id=self.id,
            component_id=self.component_id,
            date=self.date,
            type=TimelineEventType(self.type),
            title=self.title,
            description=self.description,
            actor=self.actor,
        )

    @classmethod
    def from_dto(cls, dto: TimelineEvent, position: int) -> TimelineEventModel:
        """Create ORM model from domain object."""
        return cls(
            id=dto.id,
            component_id=dto.component_id,
            position=position,
            date=dto.date,
            type=dto.type.value,
            title=dto.title,
            description=dto.description,
            actor=dto.actor,
        )


# =============================================================================
# ORM-Level Immutability (Append-Only)
# =============================================================================


@event.listens_for(TimelineEventModel, "before_update")
def prevent_timeline_update(mapper, connection, target):
    """Prevent updates to timeline entries."""
    raise ImmutabilityViolationError(
        entity_type="TimelineEvent",
        entity_id=str(target.id),
        reason="Timeline entries are append-only -- cannot modify",
    )


@event.listens_for(TimelineEventModel, "before_delete")
def prevent_timeline_delete(mapper, connection, target):
    """Prevent deletion of timeline entries."""
    raise ImmutabilityViolationError(
        entity_type="TimelineEvent",
        entity_id=str(target.id),
        reason="Timeline entries are append-only -- cannot delete",
    )
