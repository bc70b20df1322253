"""
QA inspection domain types (``rotable_kernel.domain.inspection``).

Responsibility
--------------
Pure value objects for the seven-stage quality inspection: the stage
catalog, checklist items, per-stage ``QARecord`` and the functions that
validate a submitted checklist and stamp a record as completed.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  The catalog is
passed in by the caller; ``rotable_config.bridges`` builds one from YAML.

Invariants enforced
-------------------
* Exactly seven stages, numbered 1..7 in order.
* A ``QARecord`` is keyed by ``(component_id, stage)``; re-inspection
  overwrites the record instead of adding a second one.
* A record becomes ``completed`` only when every submitted checklist item
  is checked and every label required by the stage template is present.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from rotable_kernel.domain.component import blank_to_none

QA_STAGE_COUNT = 7


class QAStatus(str, Enum):
    """Per-stage inspection state."""

    PENDING = "pending"
    COMPLETED = "completed"


@dataclass(frozen=True)
class QAChecklistItem:
    """One checkbox on an inspection sheet."""

    id: str
    label: str
    checked: bool = False


@dataclass(frozen=True)
class QAStageDefinition:
    """Template for one inspection stage."""

    stage: int
    name: str
    title: str
    checklist: tuple[str, ...]

    def blank_checklist(self) -> tuple[QAChecklistItem, ...]:
        return tuple(
            QAChecklistItem(id=str(index), label=label)
            for index, label in enumerate(self.checklist, start=1)
        )


DEFAULT_CHECKLIST: tuple[str, ...] = (
    "Inspection step 1",
    "Inspection step 2",
    "Documentation complete",
    "Sign-off ready",
)

QA_STAGES: tuple[QAStageDefinition, ...] = (
    QAStageDefinition(1, "Delivery Inspection", "Delivery Inspection Sheet", DEFAULT_CHECKLIST),
    QAStageDefinition(2, "Final Inspection", "Final Inspection Sheet", DEFAULT_CHECKLIST),
    QAStageDefinition(3, "Testing Performance", "Testing Performance Sheet", DEFAULT_CHECKLIST),
    QAStageDefinition(4, "Guidance Assembly", "Guidance Assembly Sheet", DEFAULT_CHECKLIST),
    QAStageDefinition(5, "Measurement & Inspection", "Measurement & Inspection Sheet", DEFAULT_CHECKLIST),
    QAStageDefinition(6, "Guidance Disassembly", "Guidance Disassembly Sheet", DEFAULT_CHECKLIST),
    QAStageDefinition(7, "Receiving", "Receiving Sheet", DEFAULT_CHECKLIST),
)


@dataclass(frozen=True)
class StageCatalog:
    """The ordered set of inspection stages in force for a workshop."""

    stages: tuple[QAStageDefinition, ...] = QA_STAGES

    def __post_init__(self) -> None:
        numbers = tuple(definition.stage for definition in self.stages)
        expected = tuple(range(1, QA_STAGE_COUNT + 1))
        if numbers != expected:
            raise ValueError(
                f"Stage catalog must define stages {expected} in order, got {numbers}"
            )

    def get(self, stage: int) -> QAStageDefinition | None:
        if 1 <= stage <= len(self.stages):
            return self.stages[stage - 1]
        return None

    def __contains__(self, stage: object) -> bool:
        return isinstance(stage, int) and self.get(stage) is not None

    def __iter__(self):
        return iter(self.stages)


DEFAULT_STAGE_CATALOG = StageCatalog()


@dataclass(frozen=True)
class QARecord:
    """Inspection record for one stage of one component.

    ``mechanic_name``, ``date_updated`` and ``notes`` are set on completion.
    """

    component_id: str
    stage: int
    status: QAStatus = QAStatus.PENDING
    checklist_items: tuple[QAChecklistItem, ...] = ()
    mechanic_name: str | None = None
    date_updated: datetime | None = None
    notes: str = ""
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "mechanic_name", blank_to_none(self.mechanic_name))

    @property
    def is_completed(self) -> bool:
        return self.status is QAStatus.COMPLETED


def pending_record(component_id: str, definition: QAStageDefinition) -> QARecord:
    """A blank record for a stage nobody has signed off yet."""
    return QARecord(
        component_id=component_id,
        stage=definition.stage,
        checklist_items=definition.blank_checklist(),
    )


def unchecked_labels(
    definition: QAStageDefinition,
    items: tuple[QAChecklistItem, ...],
) -> tuple[str, ...]:
    """Labels that block completion, in template order then submission order.

    A label counts as blocking when it is required by the template and was
    not submitted, or when it was submitted unchecked.
    """
    submitted = {item.label for item in items}
    missing = tuple(label for label in definition.checklist if label not in submitted)
    unchecked = tuple(item.label for item in items if not item.checked)
    return missing + tuple(label for label in unchecked if label not in missing)


def complete_record(
    record: QARecord,
    items: tuple[QAChecklistItem, ...],
    mechanic_name: str,
    notes: str,
    completed_at: datetime,
) -> QARecord:
    """Return ``record`` stamped as completed with the submitted checklist.

    The caller has already verified ``unchecked_labels`` is empty.
    """
    return replace(
        record,
        status=QAStatus.COMPLETED,
        checklist_items=tuple(items),
        mechanic_name=mechanic_name,
        date_updated=completed_at,
        notes=notes,
    )
