"""
Component domain types (``rotable_kernel.domain.component``).

Responsibility
--------------
The rotable part itself: its closed status enumeration, its closed set of
part categories, and the immutable ``Component`` value object.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports
from ``db/``, ``models/``, ``services/``, ``adapters/`` or outer layers.

Invariants enforced
-------------------
* ``current_qa_stage`` is derived from ``status``: it equals N while the
  status is ``qa-N`` and is ``None`` otherwise.  It cannot drift because
  it is never stored.
* ``total_lifetime`` and ``cycles`` are non-negative integers.
* Optional text is either ``None`` or non-empty; a blank value is stored
  as ``None`` so every store reads it back the same way.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


def blank_to_none(value: str | None) -> str | None:
    """Normalize an optional text value: empty string becomes None."""
    if value == "":
        return None
    return value


class ComponentStatus(str, Enum):
    """Component lifecycle states (closed set)."""

    RECEIVED = "received"
    REGISTERED = "registered"
    QA_1 = "qa-1"
    QA_2 = "qa-2"
    QA_3 = "qa-3"
    QA_4 = "qa-4"
    QA_5 = "qa-5"
    QA_6 = "qa-6"
    QA_7 = "qa-7"
    WAITING_FABRICATION = "waiting-fabrication"
    WAITING_GL_APPROVAL = "waiting-gl-approval"
    WAITING_PLANNER_APPROVAL = "waiting-planner-approval"
    VENDOR_REPAIR = "vendor-repair"
    RFU = "rfu"
    INSTALLED = "installed"
    REMOVED = "removed"
    WAITING_REPAIR = "waiting-repair"

    @property
    def qa_stage(self) -> int | None:
        """Stage number N for ``qa-N``, None for every other state."""
        return _QA_STAGE_BY_STATUS.get(self)

    @property
    def is_qa(self) -> bool:
        return self in _QA_STAGE_BY_STATUS

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @property
    def group(self) -> str:
        return STATUS_GROUPS[self]

    @classmethod
    def for_qa_stage(cls, stage: int) -> ComponentStatus:
        """Return the ``qa-N`` status for stage N (1..7)."""
        try:
            return _STATUS_BY_QA_STAGE[stage]
        except KeyError:
            raise ValueError(f"No QA status for stage {stage}") from None


_QA_STAGE_BY_STATUS: dict[ComponentStatus, int] = {
    ComponentStatus.QA_1: 1,
    ComponentStatus.QA_2: 2,
    ComponentStatus.QA_3: 3,
    ComponentStatus.QA_4: 4,
    ComponentStatus.QA_5: 5,
    ComponentStatus.QA_6: 6,
    ComponentStatus.QA_7: 7,
}

_STATUS_BY_QA_STAGE: dict[int, ComponentStatus] = {
    stage: status for status, stage in _QA_STAGE_BY_STATUS.items()
}

QA_STATUSES: frozenset[ComponentStatus] = frozenset(_QA_STAGE_BY_STATUS)

APPROVAL_STATUSES: frozenset[ComponentStatus] = frozenset({
    ComponentStatus.WAITING_FABRICATION,
    ComponentStatus.WAITING_GL_APPROVAL,
    ComponentStatus.WAITING_PLANNER_APPROVAL,
})

STATUS_LABELS: dict[ComponentStatus, str] = {
    ComponentStatus.RECEIVED: "Received",
    ComponentStatus.REGISTERED: "Registered",
    ComponentStatus.QA_1: "QA-1 Inspection",
    ComponentStatus.QA_2: "QA-2 Final Inspection",
    ComponentStatus.QA_3: "QA-3 Testing",
    ComponentStatus.QA_4: "QA-4 Assembly",
    ComponentStatus.QA_5: "QA-5 Measurement",
    ComponentStatus.QA_6: "QA-6 Disassembly",
    ComponentStatus.QA_7: "QA-7 Receiving",
    ComponentStatus.WAITING_FABRICATION: "Waiting Fabrication",
    ComponentStatus.WAITING_GL_APPROVAL: "Waiting GL Approval",
    ComponentStatus.WAITING_PLANNER_APPROVAL: "Waiting Planner Approval",
    ComponentStatus.VENDOR_REPAIR: "Vendor Repair",
    ComponentStatus.RFU: "Ready For Use",
    ComponentStatus.INSTALLED: "Installed / In Service",
    ComponentStatus.REMOVED: "Removed",
    ComponentStatus.WAITING_REPAIR: "Waiting Repair",
}

# Dashboard grouping (one bucket per badge colour in the workshop board)
STATUS_GROUPS: dict[ComponentStatus, str] = {
    ComponentStatus.RECEIVED: "received",
    ComponentStatus.REGISTERED: "received",
    **{status: "qa" for status in _QA_STAGE_BY_STATUS},
    ComponentStatus.WAITING_FABRICATION: "approval",
    ComponentStatus.WAITING_GL_APPROVAL: "approval",
    ComponentStatus.WAITING_PLANNER_APPROVAL: "approval",
    ComponentStatus.VENDOR_REPAIR: "vendor",
    ComponentStatus.RFU: "rfu",
    ComponentStatus.INSTALLED: "installed",
    ComponentStatus.REMOVED: "removed",
    ComponentStatus.WAITING_REPAIR: "waiting",
}


class ComponentType(str, Enum):
    """Part categories handled by the workshop (closed set)."""

    TRACK_ROLLER = "Track Roller"
    IDLER = "Idler"
    FINAL_DRIVE = "Final Drive"
    SPROCKET = "Sprocket"
    TRACK_CHAIN = "Track Chain"
    CARRIER_ROLLER = "Carrier Roller"


_OPTIONAL_TEXT_FIELDS = (
    "from_unit_id",
    "condition_notes",
    "oem_part_number",
    "model_compatibility",
    "vendor_reference",
)


@dataclass(frozen=True)
class Component:
    """A physical rotable part.

    Contract: frozen.  Every change produces a new instance; only the
    Status Transition Engine produces one with a different ``status``.
    ``version`` is the optimistic-concurrency revision assigned by the
    persistence port (0 = never saved).
    """

    id: str
    type: ComponentType
    status: ComponentStatus = ComponentStatus.RECEIVED
    serial_number: str = ""
    date_received: date | None = None
    from_unit_id: str | None = None
    condition_notes: str | None = None
    oem_part_number: str | None = None
    model_compatibility: str | None = None
    vendor_reference: str | None = None
    total_lifetime: int = 0
    cycles: int = 0
    version: int = 0

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Component id must be non-empty")
        for name in _OPTIONAL_TEXT_FIELDS:
            object.__setattr__(self, name, blank_to_none(getattr(self, name)))
        if self.total_lifetime < 0:
            raise ValueError(f"total_lifetime must be >= 0, got {self.total_lifetime}")
        if self.cycles < 0:
            raise ValueError(f"cycles must be >= 0, got {self.cycles}")
        if self.version < 0:
            raise ValueError(f"version must be >= 0, got {self.version}")

    @property
    def current_qa_stage(self) -> int | None:
        return self.status.qa_stage
