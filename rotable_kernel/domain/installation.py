"""
Installation cycle domain types (``rotable_kernel.domain.installation``).

Responsibility
--------------
Pure value objects and arithmetic for the lifecycle ledger: one
``InstallRecord`` per installation cycle, closing a record at removal,
and accruing the cycle onto the component's totals.

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  ZERO I/O.

Invariants enforced
-------------------
* ``lifetime = hm_end - hm_start`` is computed, never input, and uses
  exact integer arithmetic.
* ``hm_end >= hm_start`` and both readings are non-negative integers.
* Accruing a cycle adds exactly one to ``cycles`` and exactly the cycle
  lifetime to ``total_lifetime``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from rotable_kernel.domain.component import Component, ComponentType
from rotable_kernel.exceptions import InvalidHourMeterError


def _is_reading(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


@dataclass(frozen=True)
class InstallRecord:
    """One installation of a component on an equipment unit.

    Open while ``remove_date`` is None.
    """

    component_id: str
    component_type: ComponentType
    unit_id: str
    install_date: date
    hm_start: int
    remove_date: date | None = None
    hm_end: int | None = None
    removal_reason: str = ""
    id: UUID = field(default_factory=uuid4)

    @property
    def is_open(self) -> bool:
        return self.remove_date is None

    @property
    def lifetime(self) -> int | None:
        if self.hm_end is None:
            return None
        return self.hm_end - self.hm_start


def validate_hm_start(hm_start: object) -> int:
    if not _is_reading(hm_start):
        raise InvalidHourMeterError(
            hm_start=hm_start if isinstance(hm_start, int) else None,
            hm_end=None,
            reason="hm_start must be a non-negative integer",
        )
    return hm_start  # type: ignore[return-value]


def open_record(
    component: Component,
    unit_id: str,
    hm_start: int,
    install_date: date,
) -> InstallRecord:
    """Create the open record for a new installation.

    Raises:
        InvalidHourMeterError: ``hm_start`` is negative or not an integer.
    """
    return InstallRecord(
        component_id=component.id,
        component_type=component.type,
        unit_id=unit_id,
        install_date=install_date,
        hm_start=validate_hm_start(hm_start),
    )


def close_record(
    record: InstallRecord,
    hm_end: int,
    remove_date: date,
    reason: str = "",
) -> InstallRecord:
    """Close an open record at removal.

    Raises:
        InvalidHourMeterError: ``hm_end`` is not an integer or is below
            ``hm_start``.
    """
    if not _is_reading(hm_end):
        raise InvalidHourMeterError(
            hm_start=record.hm_start,
            hm_end=hm_end if isinstance(hm_end, int) else None,
            reason="hm_end must be a non-negative integer",
        )
    if hm_end < record.hm_start:
        raise InvalidHourMeterError(
            hm_start=record.hm_start,
            hm_end=hm_end,
            reason="hm_end must be >= hm_start",
        )
    return replace(
        record,
        remove_date=remove_date,
        hm_end=hm_end,
        removal_reason=reason,
    )


def accrue_cycle(component: Component, closed: InstallRecord) -> Component:
    """Add one completed cycle and its lifetime to the component totals."""
    lifetime = closed.lifetime
    if lifetime is None:
        raise ValueError(f"Install record {closed.id} is still open")
    return replace(
        component,
        total_lifetime=component.total_lifetime + lifetime,
        cycles=component.cycles + 1,
    )


@dataclass(frozen=True)
class LifetimeSummary:
    """Aggregate operating hours for a component."""

    component_id: str
    total_lifetime: int
    cycles: int

    @property
    def average_lifetime_per_cycle(self) -> Decimal | None:
        if self.cycles == 0:
            return None
        return Decimal(self.total_lifetime) / Decimal(self.cycles)

    @classmethod
    def of(cls, component: Component) -> LifetimeSummary:
        return cls(
            component_id=component.id,
            total_lifetime=component.total_lifetime,
            cycles=component.cycles,
        )
