"""
Module: rotable_kernel.models.inspection
Responsibility: ORM persistence for per-stage QA records.

Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - UNIQUE(component_id, stage): at most one record per stage per
      component.  Re-inspection overwrites the row.
    - stage is between 1 and 7.
    - The checklist is stored as a JSON list of {id, label, checked}.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    JSON,
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from rotable_kernel.db.base import Base, UUIDString

if TYPE_CHECKING:
    from rotable_kernel.domain.inspection import QARecord


class QARecordModel(Base):
    """Persistent inspection record for one stage of one component."""

    __tablename__ = "qa_records"

    __table_args__ = (
        UniqueConstraint("component_id", "stage", name="uq_qa_records_stage"),
        CheckConstraint("stage BETWEEN 1 AND 7", name="ck_qa_records_stage"),
        CheckConstraint(
            "status IN ('pending', 'completed')",
            name="ck_qa_records_valid_status",
        ),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)
    component_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("components.id"), nullable=False,
    )
    stage: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    checklist: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    mechanic_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    date_updated: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<QARecord {self.component_id} QA-{self.stage} {self.status}>"

    def to_dto(self) -> QARecord:
        """Convert ORM model to frozen domain object."""
        from rotable_kernel.domain.inspection import (
            QAChecklistItem,
            QARecord,
            QAStatus,
        )

        return QARecord(
            id=self.id,
            component_id=self.component_id,
            stage=self.stage,
            status=QAStatus(self.status),
            checklist_items=tuple(
                QAChecklistItem(
                    id=item["id"], label=item["label"], checked=item["checked"],
                )
                for item in self.checklist
            ),
            mechanic_name=self.mechanic_name,
            date_updated=self.date_updated,
            notes=self.notes,
        )

    def apply(self, dto: QARecord) -> None:
        """Overwrite this row with ``dto`` (re-inspection keeps the row id)."""
        self.status = dto.status.value
        self.checklist = [
            {"id": item.id, "label": item.label, "checked": item.checked}
            for item in dto.checklist_items
        ]
        self.mechanic_name = dto.mechanic_name
        self.date_updated = dto.date_updated
        self.notes = dto.notes

    @classmethod
    def from_dto(cls, dto: QARecord) -> QARecordModel:
        """Create ORM model from domain object."""
        model = cls(id=dto.id, component_id=dto.component_id, stage=dto.stage)
        model.apply(dto)
        return model
