"""
Module: rotable_kernel.models.installation
Responsibility: ORM persistence for installation cycle records.

Architecture position: Kernel > Models.  May import from db/base.py and
    exceptions.py only.

Invariants enforced:
    - hm_start >= 0 and hm_end >= hm_start when present (check constraints).
    - A closed record (remove_date set) is immutable: an ORM listener rejects
      any UPDATE to a row that was already closed, and DELETE of any row.
    - ``position`` preserves insertion order per component.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column

from rotable_kernel.db.base import Base, UUIDString
from rotable_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from rotable_kernel.domain.installation import InstallRecord


class InstallRecordModel(Base):
    """Persistent installation cycle."""

    __tablename__ = "install_records"

    __table_args__ = (
        CheckConstraint("hm_start >= 0", name="ck_install_records_hm_start"),
        CheckConstraint(
            "hm_end IS NULL OR hm_end >= hm_start",
            name="ck_install_records_hm_end",
        ),
        Index("ix_install_records_component", "component_id", "position"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)
    component_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("components.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    component_type: Mapped[str] = mapped_column(String(40), nullable=False)
    unit_id: Mapped[str] = mapped_column(String(64), nullable=False)
    install_date: Mapped[date] = mapped_column(Date, nullable=False)
    hm_start: Mapped[int] = mapped_column(BigInteger, nullable=False)
    remove_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    hm_end: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    removal_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        state = "open" if self.remove_date is None else f"closed {self.remove_date}"
        return f"<InstallRecord {self.id} {self.component_id}@{self.unit_id} {state}>"

    def to_dto(self) -> InstallRecord:
        """Convert ORM model to frozen domain object."""
        from rotable_kernel.domain.component import ComponentType
        from rotable_kernel.domain.installation import InstallRecord

        return InstallRecord(
            id=self.id,
            component_id=self.component_id,
            component_type=ComponentType(self.component_type),
            unit_id=self.unit_id,
            install_date=self.install_date,
            hm_start=self.hm_start,
            remove_date=self.remove_date,
            hm_end=self.hm_end,
            removal_reason=self.removal_reason,
        )

    def apply(self, dto: InstallRecord) -> None:
        """Copy the removal fields of ``dto`` onto this row."""
        self.remove_date = dto.remove_date
        self.hm_end = dto.hm_end
        self.removal_reason = dto.removal_reason

    @classmethod
    def from_dto(cls, dto: InstallRecord, position: int) -> InstallRecordModel:
        """Create ORM model from domain object."""
        return cls(
            id=dto.id,
            component_id=dto.component_id,
            position=position,
            component_type=dto.component_type.value,
            unit_id=dto.unit_id,
            install_date=dto.install_date,
            hm_start=dto.hm_start,
            remove_date=dto.remove_date,
            hm_end=dto.hm_end,
            removal_reason=dto.removal_reason,
        )


# =============================================================================
# ORM-Level Immutability for Closed Records
# =============================================================================


@event.listens_for(InstallRecordModel, "before_update")
def prevent_closed_record_update(mapper, connection, target):
    """Prevent updates to install records that were already closed."""
    history = inspect(target).attrs.remove_date.history
    previous = history.deleted or history.unchanged
    if previous and previous[0] is not None:
        raise ImmutabilityViolationError(
            entity_type="InstallRecord",
            entity_id=str(target.id),
            reason="Closed install records are immutable -- cannot modify",
        )


@event.listens_for(InstallRecordModel, "before_delete")
def prevent_record_delete(mapper, connection, target):
    """Prevent deletion of install records."""
    raise ImmutabilityViolationError(
        entity_type="InstallRecord",
        entity_id=str(target.id),
        reason="Install records are part of the lifetime ledger -- cannot delete",
    )
