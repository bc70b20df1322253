"""
Pure domain layer.

This module contains immutable value objects and pure lifecycle rules
with NO dependencies on:
- ORM (SQLAlchemy)
- Database or workbook storage
- Wall-clock time (a Clock is injected)
- I/O

Same inputs always produce the same outputs.
"""

from rotable_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from rotable_kernel.domain.component import (
    APPROVAL_STATUSES,
    QA_STATUSES,
    Component,
    ComponentStatus,
    ComponentType,
)
from rotable_kernel.domain.fabrication import (
    FABRICATION_TRANSITIONS,
    ApprovalDecision,
    ApprovalDecisionRecord,
    ApproverRole,
    FabricationReason,
    FabricationRequest,
    FabricationStatus,
)
from rotable_kernel.domain.inspection import (
    DEFAULT_STAGE_CATALOG,
    QA_STAGES,
    QAChecklistItem,
    QARecord,
    QAStageDefinition,
    QAStatus,
    StageCatalog,
)
from rotable_kernel.domain.installation import InstallRecord, LifetimeSummary
from rotable_kernel.domain.lifecycle import (
    ALLOWED_EVENTS,
    LIFECYCLE_TRANSITIONS,
    LifecycleEvent,
    TransitionOutcome,
    TransitionPayload,
    apply_transition,
)
from rotable_kernel.domain.ports import NotificationPort, PersistencePort
from rotable_kernel.domain.result import Result
from rotable_kernel.domain.timeline import TimelineEvent, TimelineEventType

__all__ = [
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Component
    "APPROVAL_STATUSES",
    "QA_STATUSES",
    "Component",
    "ComponentStatus",
    "ComponentType",
    # Lifecycle
    "ALLOWED_EVENTS",
    "LIFECYCLE_TRANSITIONS",
    "LifecycleEvent",
    "TransitionOutcome",
    "TransitionPayload",
    "apply_transition",
    # Inspection
    "DEFAULT_STAGE_CATALOG",
    "QA_STAGES",
    "QAChecklistItem",
    "QARecord",
    "QAStageDefinition",
    "QAStatus",
    "StageCatalog",
    # Fabrication
    "FABRICATION_TRANSITIONS",
    "ApprovalDecision",
    "ApprovalDecisionRecord",
    "ApproverRole",
    "FabricationReason",
    "FabricationRequest",
    "FabricationStatus",
    # Installation
    "InstallRecord",
    "LifetimeSummary",
    # Timeline
    "TimelineEvent",
    "TimelineEventType",
    # Ports
    "NotificationPort",
    "PersistencePort",
    # Result
    "Result",
]
