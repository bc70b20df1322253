"""
TransitionService -- Status Transition Engine shell.

Responsibility:
    Loads a component, asks the pure lifecycle engine for the next state,
    saves it under the optimistic version check, appends the timeline
    entry and fires a notification.  Every other service drives status
    changes through ``advance``.

Architecture position:
    Kernel > Services.  Wraps ``rotable_kernel.domain.lifecycle``.

Invariants enforced:
    - The component is saved before the timeline entry, so a writer that
      loses the version race writes nothing.
    - A write that belongs with an already-saved status change goes through
      ``follow_up``; if it fails the caller gets PartialCommitError naming
      the stored status, never the bare port error.
    - Events that create or close a QA, fabrication or install record are
      refused by ``apply_transition``; they are only reachable through the
      service that owns the record.
    - A failing notifier is logged at WARNING and never fails a transition.

Failure modes:
    - InvalidTransitionError for a missing edge, a failed guard, or a
      record-owned event sent through ``apply_transition``.
    - ConcurrentModificationError when the component changed since load.
    - DuplicateComponentError when receiving an id that already exists.
    - PartialCommitError when a follow-up write fails after the save.
"""

from __future__ import annotations

from datetime import date
from typing import Callable

from rotable_kernel.domain import lifecycle
from rotable_kernel.domain.clock import Clock
from rotable_kernel.domain.component import Component, ComponentType
from rotable_kernel.domain.lifecycle import LifecycleEvent, TransitionPayload
from rotable_kernel.domain.ports import NotificationPort, PersistencePort
from rotable_kernel.domain.timeline import TimelineEvent, TimelineEventType
from rotable_kernel.exceptions import InvalidTransitionError, PartialCommitError
from rotable_kernel.logging_config import LogContext, get_logger
from rotable_kernel.services.base import BaseService, kernel_operation

logger = get_logger("services.transition")


class TransitionService(BaseService):
    """Applies lifecycle events to persisted components."""

    def __init__(
        self,
        persistence: PersistencePort,
        clock: Clock | None = None,
        notifier: NotificationPort | None = None,
    ):
        super().__init__(persistence, clock)
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Internal API (raises)
    # ------------------------------------------------------------------

    def advance(
        self,
        component: Component,
        event: LifecycleEvent,
        payload: TransitionPayload | None = None,
    ) -> Component:
        """Apply ``event`` to ``component`` as loaded and persist the result.

        ``component`` may carry other field changes (e.g. accrued lifetime);
        they are saved together with the new status.

        Raises:
            InvalidTransitionError: No edge or guard failed.
            ConcurrentModificationError: ``component.version`` is stale.
        """
        payload = payload or TransitionPayload()
        outcome = lifecycle.apply_transition(component, event, payload).unwrap()

        saved = self._persistence.save(outcome.component)
        entry = TimelineEvent(
            component_id=saved.id,
            date=self._clock.now(),
            type=outcome.timeline_type,
            title=outcome.title,
            description=outcome.description,
            actor=payload.actor,
        )
        self.follow_up(
            saved, "timeline entry", lambda: self._persistence.append_timeline_event(entry),
        )

        logger.info(
            "transition_applied",
            extra={
                "component_id": saved.id,
                "lifecycle_event": event.value,
                "from_status": outcome.from_status.value,
                "to_status": outcome.to_status.value,
                "version": saved.version,
            },
        )
        self.notify(outcome.timeline_type.value, f"{saved.id}: {outcome.title}")
        return saved

    def follow_up(self, saved: Component, missing: str, write: Callable[[], object]) -> None:
        """Run ``write``, which belongs with the status change in ``saved``.

        ``saved`` is already stored, so a failure here cannot be reported as
        if nothing happened.

        Raises:
            PartialCommitError: ``write`` raised; the original error is the
                ``__cause__``.
        """
        try:
            write()
        except Exception as exc:
            logger.error(
                "partial_commit",
                extra={
                    "component_id": saved.id,
                    "status": saved.status.value,
                    "version": saved.version,
                    "missing": missing,
                    "error": str(exc),
                },
            )
            raise PartialCommitError(
                saved.id, saved.status.value, saved.version, missing,
            ) from exc

    def notify(self, event_kind: str, message: str) -> None:
        """Fire-and-forget notification."""
        if self._notifier is None:
            return
        try:
            self._notifier.notify(event_kind, message)
        except Exception:
            logger.warning(
                "notification_failed",
                extra={"event_kind": event_kind},
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Public operations (return Result)
    # ------------------------------------------------------------------

    @kernel_operation("apply_transition")
    def apply_transition(
        self,
        component_id: str,
        event: LifecycleEvent | str,
        payload: TransitionPayload | None = None,
    ) -> Component:
        """Apply a lifecycle event that is not owned by a record workflow."""
        event = LifecycleEvent(event)
        with LogContext.bind(component_id=component_id):
            component = self._persistence.load(component_id)
            owner = lifecycle.RECORD_OWNED_EVENTS.get(event)
            if owner is not None:
                raise InvalidTransitionError(
                    component_id=component.id,
                    current_status=component.status.value,
                    event=event.value,
                    reason=f"use {owner}() for this event",
                )
            return self.advance(component, event, payload)

    @kernel_operation("receive_component")
    def receive_component(
        self,
        component_id: str,
        component_type: ComponentType | str,
        serial_number: str = "",
        date_received: date | None = None,
        from_unit_id: str | None = None,
        condition_notes: str | None = None,
        oem_part_number: str | None = None,
        model_compatibility: str | None = None,
        vendor_reference: str | None = None,
        received_by: str | None = None,
    ) -> Component:
        """Create a component in ``received`` and log its arrival."""
        component = Component(
            id=component_id,
            type=ComponentType(component_type),
            serial_number=serial_number,
            date_received=date_received or self._clock.today(),
            from_unit_id=from_unit_id,
            condition_notes=condition_notes,
            oem_part_number=oem_part_number,
            model_compatibility=model_compatibility,
            vendor_reference=vendor_reference,
        )
        with LogContext.bind(component_id=component_id):
            saved = self._persistence.save(component)
            source = f" from unit {from_unit_id}" if from_unit_id else ""
            entry = TimelineEvent(
                component_id=saved.id,
                date=self._clock.now(),
                type=TimelineEventType.RECEIVED,
                title="Component Received",
                description=f"{saved.type.value} {saved.id} received{source}",
                actor=received_by,
            )
            self.follow_up(
                saved, "timeline entry", lambda: self._persistence.append_timeline_event(entry),
            )
            logger.info(
                "component_received",
                extra={"component_id": saved.id, "component_type": saved.type.value},
            )
            self.notify(TimelineEventType.RECEIVED.value, f"{saved.id}: Component Received")
            return saved

    def _simple(
        self, component_id: str, event: LifecycleEvent, actor: str | None, note: str,
    ) -> Component:
        with LogContext.bind(component_id=component_id, actor_id=actor):
            component = self._persistence.load(component_id)
            return self.advance(component, event, TransitionPayload(actor=actor, note=note))

    @kernel_operation("confirm_registration")
    def confirm_registration(
        self, component_id: str, actor: str | None = None, note: str = "",
    ) -> Component:
        """``received``/``registered`` -> ``qa-1``."""
        return self._simple(component_id, LifecycleEvent.REGISTER, actor, note)

    @kernel_operation("return_from_vendor")
    def return_from_vendor(
        self, component_id: str, actor: str | None = None, note: str = "",
    ) -> Component:
        """``vendor-repair`` -> ``qa-1``."""
        return self._simple(component_id, LifecycleEvent.RETURN_FROM_VENDOR, actor, note)

    @kernel_operation("hold_for_repair")
    def hold_for_repair(
        self, component_id: str, actor: str | None = None, note: str = "",
    ) -> Component:
        """``qa-1`` -> ``waiting-repair``."""
        return self._simple(component_id, LifecycleEvent.HOLD_FOR_REPAIR, actor, note)

    @kernel_operation("resume_repair")
    def resume_repair(
        self, component_id: str, actor: str | None = None, note: str = "",
    ) -> Component:
        """``waiting-repair`` -> ``qa-1``."""
        return self._simple(component_id, LifecycleEvent.RESUME_REPAIR, actor, note)
