"""
LedgerService -- install/remove cycle ledger.

Responsibility:
    Opens an InstallRecord when an RFU component goes onto an equipment
    unit, closes it at removal with the hour-meter lifetime, and accrues
    the completed cycle onto the component.

Architecture position:
    Kernel > Services.  Arithmetic lives in ``domain.installation``;
    status changes go through ``TransitionService``.

Invariants enforced:
    - At most one open InstallRecord per component; an open record exists
      exactly while the component is ``installed``.
    - ``lifetime = hm_end - hm_start`` in exact integer arithmetic, added
      to ``total_lifetime`` together with ``cycles + 1`` in the same
      version-checked save that moves the component to ``qa-1``.  A
      removal therefore accrues exactly once.
    - The status change is saved before the install record, so the
      version check decides racing installs and removals.

Failure modes:
    - AlreadyInstalledError, ComponentNotRFUError, InvalidHourMeterError
      on install.
    - NotFoundError, AlreadyRemovedError, InvalidHourMeterError on removal.
    - PartialCommitError when the record write fails after the status
      change was saved.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from rotable_kernel.domain.clock import Clock
from rotable_kernel.domain.component import ComponentStatus
from rotable_kernel.domain.installation import (
    InstallRecord,
    LifetimeSummary,
    accrue_cycle,
    close_record,
    open_record,
)
from rotable_kernel.domain.lifecycle import LifecycleEvent, TransitionPayload
from rotable_kernel.domain.ports import PersistencePort
from rotable_kernel.exceptions import (
    AlreadyInstalledError,
    AlreadyRemovedError,
    ComponentNotRFUError,
)
from rotable_kernel.logging_config import LogContext, get_logger
from rotable_kernel.services.base import BaseService, kernel_operation
from rotable_kernel.services.transition_service import TransitionService

logger = get_logger("services.ledger")


class LedgerService(BaseService):
    """Installation cycles and lifetime accounting."""

    def __init__(
        self,
        persistence: PersistencePort,
        transitions: TransitionService,
        clock: Clock | None = None,
    ):
        super().__init__(persistence, clock)
        self._transitions = transitions

    @kernel_operation("install")
    def install(
        self,
        component_id: str,
        unit_id: str,
        hm_start: int,
        install_date: date | None = None,
        actor: str | None = None,
    ) -> InstallRecord:
        """Install an RFU component on ``unit_id`` at hour-meter ``hm_start``."""
        with LogContext.bind(component_id=component_id, actor_id=actor):
            component = self._persistence.load(component_id)

            existing = self._persistence.load_open_install_record(component.id)
            if existing is not None:
                raise AlreadyInstalledError(
                    component_id=component.id,
                    install_record_id=str(existing.id),
                    unit_id=existing.unit_id,
                )
            if component.status is not ComponentStatus.RFU:
                raise ComponentNotRFUError(component.id, component.status.value)

            record = open_record(
                component, unit_id, hm_start, install_date or self._clock.today(),
            )

            saved = self._transitions.advance(
                component,
                LifecycleEvent.INSTALL,
                TransitionPayload(
                    actor=actor,
                    note=f"Unit {unit_id}, HM start {record.hm_start}",
                ),
            )
            self._transitions.follow_up(
                saved,
                f"install record {record.id}",
                lambda: self._persistence.save_install_record(record),
            )

            logger.info(
                "component_installed",
                extra={
                    "component_id": component.id,
                    "install_record_id": record.id,
                    "unit_id": unit_id,
                    "hm_start": record.hm_start,
                },
            )
            return record

    @kernel_operation("remove")
    def remove(
        self,
        install_record_id: UUID,
        hm_end: int,
        remove_date: date | None = None,
        reason: str = "",
        actor: str | None = None,
    ) -> InstallRecord:
        """Remove an installed component and accrue the cycle lifetime."""
        with LogContext.bind(actor_id=actor):
            record = self._persistence.load_install_record(install_record_id)
            if not record.is_open:
                raise AlreadyRemovedError(str(record.id), record.remove_date.isoformat())

            with LogContext.bind(component_id=record.component_id):
                closed = close_record(
                    record, hm_end, remove_date or self._clock.today(), reason,
                )
                component = self._persistence.load(record.component_id)
                accrued = accrue_cycle(component, closed)

                note = f"Unit {record.unit_id}, lifetime {closed.lifetime} h"
                if reason:
                    note += f", reason: {reason}"
                saved = self._transitions.advance(
                    accrued,
                    LifecycleEvent.REMOVE,
                    TransitionPayload(actor=actor, note=note),
                )
                self._transitions.follow_up(
                    saved,
                    f"closed install record {closed.id}",
                    lambda: self._persistence.save_install_record(closed),
                )

                logger.info(
                    "component_removed",
                    extra={
                        "component_id": record.component_id,
                        "install_record_id": record.id,
                        "unit_id": record.unit_id,
                        "lifetime": closed.lifetime,
                        "total_lifetime": saved.total_lifetime,
                        "cycles": saved.cycles,
                    },
                )
                return closed

    @kernel_operation("lifetime_summary")
    def lifetime_summary(self, component_id: str) -> LifetimeSummary:
        """Total hours, cycle count and average hours per cycle."""
        return LifetimeSummary.of(self._persistence.load(component_id))
