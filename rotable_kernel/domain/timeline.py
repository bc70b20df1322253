"""
Timeline domain types (``rotable_kernel.domain.timeline``).

Append-only audit log entries, one per state-changing action.  Entries are
never mutated or deleted; the read side orders them newest first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from rotable_kernel.domain.component import blank_to_none


class TimelineEventType(str, Enum):
    """Kinds of timeline entries."""

    RECEIVED = "received"
    QA = "qa"
    REPAIR = "repair"
    VENDOR = "vendor"
    RFU = "rfu"
    INSTALLED = "installed"
    REMOVED = "removed"
    FABRICATION = "fabrication"
    APPROVAL = "approval"


@dataclass(frozen=True)
class TimelineEvent:
    """One audit log entry for one component. Immutable."""

    component_id: str
    date: datetime
    type: TimelineEventType
    title: str
    description: str
    actor: str | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "actor", blank_to_none(self.actor))
