"""
Module: rotable_kernel.models.component
Responsibility: ORM persistence for components.

Architecture position: Kernel > Models.  May import from db/ only (domain
    types are imported lazily inside to_dto/from_dto).

Invariants enforced:
    - Status values are limited by a check constraint to the closed
      ComponentStatus set.
    - total_lifetime, cycles and version are non-negative.
    - ``version`` is only ever changed by SqlAlchemyPersistence.save through a
      compare-and-swap UPDATE.

Failure modes:
    - IntegrityError on duplicate component id.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, CheckConstraint, Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rotable_kernel.db.base import Base

if TYPE_CHECKING:
    from rotable_kernel.domain.component import Component


class ComponentModel(Base):
    """Persistent rotable component, keyed by its workshop id."""

    __tablename__ = "components"

    __table_args__ = (
        CheckConstraint(
            "status IN ('received', 'registered', 'qa-1', 'qa-2', 'qa-3', "
            "'qa-4', 'qa-5', 'qa-6', 'qa-7', 'waiting-fabrication', "
            "'waiting-gl-approval', 'waiting-planner-approval', "
            "'vendor-repair', 'rfu', 'installed', 'removed', 'waiting-repair')",
            name="ck_components_valid_status",
        ),
        CheckConstraint("total_lifetime >= 0", name="ck_components_lifetime"),
        CheckConstraint("cycles >= 0", name="ck_components_cycles"),
        CheckConstraint("version >= 0", name="ck_components_version"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    status: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    serial_number: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    date_received: Mapped[date | None] = mapped_column(Date, nullable=True)
    from_unit_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    condition_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    oem_part_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    model_compatibility: Mapped[str | None] = mapped_column(String(200), nullable=True)
    vendor_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_lifetime: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    cycles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<Component {self.id} {self.type} status={self.status} v{self.version}>"

    def to_dto(self) -> Component:
        """Convert ORM model to frozen domain object."""
        from rotable_kernel.domain.component import (
            Component,
            ComponentStatus,
            ComponentType,
        )

        return Component(
            id=self.id,
            type=ComponentType(self.type),
            status=ComponentStatus(self.status),
            serial_number=self.serial_number,
            date_received=self.date_received,
            from_unit_id=self.from_unit_id,
            condition_notes=self.condition_notes,
            oem_part_number=self.oem_part_number,
            model_compatibility=self.model_compatibility,
            vendor_reference=self.vendor_reference,
            total_lifetime=self.total_lifetime,
            cycles=self.cycles,
            version=self.version,
        )

    @staticmethod
    def column_values(dto: Component) -> dict:
        """Mutable column values of ``dto`` (everything except id and version)."""
        return {
            "type": dto.type.value,
            "status": dto.status.value,
            "serial_number": dto.serial_number,
            "date_received": dto.date_received,
            "from_unit_id": dto.from_unit_id,
            "condition_notes": dto.condition_notes,
            "oem_part_number": dto.oem_part_number,
            "model_compatibility": dto.model_compatibility,
            "vendor_reference": dto.vendor_reference,
            "total_lifetime": dto.total_lifetime,
            "cycles": dto.cycles,
        }

    @classmethod
    def from_dto(cls, dto: Component, version: int) -> ComponentModel:
        """Create ORM model from domain object, stamped with ``version``."""
        return cls(id=dto.id, version=version, **cls.column_values(dto))
