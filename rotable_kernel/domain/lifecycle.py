"""
Status Transition Engine (``rotable_kernel.domain.lifecycle``).

Responsibility
--------------
The authoritative component lifecycle state machine.  Defines the
lifecycle events, the single transition table, and the pure
``apply_transition`` function that validates an event against the table
and produces the next ``Component``.

Architecture position
---------------------
**Kernel domain layer** -- pure functions over frozen value objects.
ZERO I/O.  Callers (``services.transition_service``) persist the returned
component and append a timeline event built from the returned outcome.

Invariants enforced
-------------------
* ``LIFECYCLE_TRANSITIONS`` is the only source of legal status changes.
  Anything not in the table fails with ``InvalidTransitionError``
  carrying the attempted event and the current state.
* ``ALLOWED_EVENTS`` has an entry for every ``ComponentStatus`` (states
  with no outgoing edges map to an empty frozenset), so adding a status
  without deciding its edges is caught by the test suite.
* ``complete-stage`` is guarded: the QA record of the current stage must
  be completed.
* Deterministic: same (component, event, payload) always yields the same
  outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from rotable_kernel.domain.component import Component, ComponentStatus
from rotable_kernel.domain.result import Result
from rotable_kernel.domain.timeline import TimelineEventType
from rotable_kernel.exceptions import InvalidTransitionError


class LifecycleEvent(str, Enum):
    """Intents that move a component between lifecycle states."""

    REGISTER = "register"
    COMPLETE_STAGE = "complete-stage"
    REQUEST_FABRICATION = "request-fabrication"
    GL_APPROVE = "gl-approve"
    PLANNER_APPROVE = "planner-approve"
    REJECT_FABRICATION = "reject-fabrication"
    RETURN_FROM_VENDOR = "return-from-vendor"
    INSTALL = "install"
    REMOVE = "remove"
    HOLD_FOR_REPAIR = "hold-for-repair"
    RESUME_REPAIR = "resume-repair"


# Guard names
GUARD_STAGE_COMPLETED = "stage_completed"


@dataclass(frozen=True)
class TransitionPayload:
    """Guard inputs and timeline context supplied with an event."""

    stage_completed: bool = False
    actor: str | None = None
    note: str = ""


@dataclass(frozen=True)
class LifecycleTransition:
    """One edge of the lifecycle state machine.

    ``title`` may contain ``{stage}``, filled with the QA stage of the
    source state.
    """

    from_status: ComponentStatus
    event: LifecycleEvent
    to_status: ComponentStatus
    timeline_type: TimelineEventType
    title: str
    guard: str | None = None


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of a legal transition: the next component plus timeline text."""

    component: Component
    from_status: ComponentStatus
    to_status: ComponentStatus
    event: LifecycleEvent
    timeline_type: TimelineEventType
    title: str
    description: str


def _qa_edges() -> list[LifecycleTransition]:
    edges = []
    for stage in range(1, 7):
        edges.append(LifecycleTransition(
            ComponentStatus.for_qa_stage(stage),
            LifecycleEvent.COMPLETE_STAGE,
            ComponentStatus.for_qa_stage(stage + 1),
            TimelineEventType.QA,
            "QA-{stage} Completed",
            guard=GUARD_STAGE_COMPLETED,
        ))
    edges.append(LifecycleTransition(
        ComponentStatus.QA_7,
        LifecycleEvent.COMPLETE_STAGE,
        ComponentStatus.RFU,
        TimelineEventType.RFU,
        "QA-{stage} Completed - Ready For Use",
        guard=GUARD_STAGE_COMPLETED,
    ))
    return edges


_EDGES: tuple[LifecycleTransition, ...] = (
    LifecycleTransition(
        ComponentStatus.RECEIVED, LifecycleEvent.REGISTER, ComponentStatus.QA_1,
        TimelineEventType.QA, "Registered - Sent to QA-1",
    ),
    LifecycleTransition(
        ComponentStatus.REGISTERED, LifecycleEvent.REGISTER, ComponentStatus.QA_1,
        TimelineEventType.QA, "Registered - Sent to QA-1",
    ),
    *_qa_edges(),
    LifecycleTransition(
        ComponentStatus.QA_1, LifecycleEvent.REQUEST_FABRICATION,
        ComponentStatus.WAITING_GL_APPROVAL,
        TimelineEventType.FABRICATION, "Fabrication Requested",
    ),
    LifecycleTransition(
        ComponentStatus.WAITING_GL_APPROVAL, LifecycleEvent.GL_APPROVE,
        ComponentStatus.WAITING_PLANNER_APPROVAL,
        TimelineEventType.APPROVAL, "GL Approved",
    ),
    LifecycleTransition(
        ComponentStatus.WAITING_PLANNER_APPROVAL, LifecycleEvent.PLANNER_APPROVE,
        ComponentStatus.VENDOR_REPAIR,
        TimelineEventType.VENDOR, "Planner Approved - Sent to Vendor",
    ),
    LifecycleTransition(
        ComponentStatus.WAITING_GL_APPROVAL, LifecycleEvent.REJECT_FABRICATION,
        ComponentStatus.QA_1,
        TimelineEventType.APPROVAL, "Fabrication Rejected by GL - Back to QA-1",
    ),
    LifecycleTransition(
        ComponentStatus.WAITING_PLANNER_APPROVAL, LifecycleEvent.REJECT_FABRICATION,
        ComponentStatus.QA_1,
        TimelineEventType.APPROVAL, "Fabrication Rejected by Planner - Back to QA-1",
    ),
    LifecycleTransition(
        ComponentStatus.VENDOR_REPAIR, LifecycleEvent.RETURN_FROM_VENDOR,
        ComponentStatus.QA_1,
        TimelineEventType.VENDOR, "Returned from Vendor - Sent to QA-1",
    ),
    LifecycleTransition(
        ComponentStatus.RFU, LifecycleEvent.INSTALL, ComponentStatus.INSTALLED,
        TimelineEventType.INSTALLED, "Installed",
    ),
    LifecycleTransition(
        ComponentStatus.INSTALLED, LifecycleEvent.REMOVE, ComponentStatus.QA_1,
        TimelineEventType.REMOVED, "Removed - Sent to QA-1",
    ),
    LifecycleTransition(
        ComponentStatus.QA_1, LifecycleEvent.HOLD_FOR_REPAIR,
        ComponentStatus.WAITING_REPAIR,
        TimelineEventType.REPAIR, "Held for Repair",
    ),
    LifecycleTransition(
        ComponentStatus.WAITING_REPAIR, LifecycleEvent.RESUME_REPAIR,
        ComponentStatus.QA_1,
        TimelineEventType.REPAIR, "Repair Resumed - Sent to QA-1",
    ),
)

LIFECYCLE_TRANSITIONS: dict[tuple[ComponentStatus, LifecycleEvent], LifecycleTransition] = {
    (edge.from_status, edge.event): edge for edge in _EDGES
}

ALLOWED_EVENTS: dict[ComponentStatus, frozenset[LifecycleEvent]] = {
    status: frozenset(
        event for (source, event) in LIFECYCLE_TRANSITIONS if source is status
    )
    for status in ComponentStatus
}

# Events whose edge creates or closes a record owned by another controller.
# They are reachable only through that controller so the record and the
# component status cannot disagree.
RECORD_OWNED_EVENTS: dict[LifecycleEvent, str] = {
    LifecycleEvent.COMPLETE_STAGE: "complete_stage",
    LifecycleEvent.REQUEST_FABRICATION: "request_fabrication",
    LifecycleEvent.GL_APPROVE: "approve",
    LifecycleEvent.PLANNER_APPROVE: "approve",
    LifecycleEvent.REJECT_FABRICATION: "reject",
    LifecycleEvent.INSTALL: "install",
    LifecycleEvent.REMOVE: "remove",
}


def allowed_events(status: ComponentStatus) -> frozenset[LifecycleEvent]:
    """Events with an outgoing edge from ``status``."""
    return ALLOWED_EVENTS[status]


def _describe(
    component: Component,
    edge: LifecycleTransition,
    payload: TransitionPayload,
) -> str:
    text = (
        f"{component.id} ({component.type.value}): "
        f"{edge.from_status.label} -> {edge.to_status.label}"
    )
    if payload.actor:
        text += f" by {payload.actor}"
    if payload.note:
        text += f". {payload.note}"
    return text


def apply_transition(
    component: Component,
    event: LifecycleEvent,
    payload: TransitionPayload | None = None,
) -> Result[TransitionOutcome]:
    """Validate ``event`` against the transition table and apply it.

    Returns ``Result.fail(InvalidTransitionError)`` when no edge exists
    from the component's status or the edge's guard is not satisfied.
    The returned component keeps the input ``version``; the persistence
    port bumps it on save.
    """
    payload = payload or TransitionPayload()
    edge = LIFECYCLE_TRANSITIONS.get((component.status, event))
    if edge is None:
        return Result.fail(InvalidTransitionError(
            component_id=component.id,
            current_status=component.status.value,
            event=event.value,
        ))

    if edge.guard == GUARD_STAGE_COMPLETED and not payload.stage_completed:
        return Result.fail(InvalidTransitionError(
            component_id=component.id,
            current_status=component.status.value,
            event=event.value,
            target_status=edge.to_status.value,
            reason=f"QA-{component.current_qa_stage} record is not completed",
        ))

    title = edge.title.format(stage=component.current_qa_stage)
    return Result.ok(TransitionOutcome(
        component=replace(component, status=edge.to_status),
        from_status=edge.from_status,
        to_status=edge.to_status,
        event=event,
        timeline_type=edge.timeline_type,
        title=title,
        description=_describe(component, edge, payload),
    ))
