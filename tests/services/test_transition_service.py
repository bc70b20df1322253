"""
TransitionService tests: receiving, registration, the generic
apply_transition entry point, version checks and notification isolation.
"""

from datetime import date

import pytest

from rotable_kernel.adapters.memory import InMemoryPersistence
from rotable_kernel.domain.component import ComponentStatus
from rotable_kernel.domain.lifecycle import LifecycleEvent, TransitionPayload
from rotable_kernel.domain.timeline import TimelineEventType
from rotable_kernel.exceptions import (
    ConcurrentModificationError,
    DuplicateComponentError,
    InvalidTransitionError,
    NotFoundError,
)
from rotable_kernel.services.lifecycle_kernel import LifecycleKernel
from tests.conftest import TEST_MECHANIC, receive_and_register


class ExplodingNotifier:
    def notify(self, event_kind: str, message: str) -> None:
        raise RuntimeError("notification backend down")


class TestReceiveComponent:

    def test_receive_creates_received_component(self, kernel, notifier):
        result = kernel.receive_component(
            "CMP-2024-001",
            "Final Drive",
            serial_number="FD-99812",
            from_unit_id="EX-2200-017",
            condition_notes="Oil leak at seal",
            received_by="Budi",
        )

        assert result.is_ok
        component = result.value
        assert component.status is ComponentStatus.RECEIVED
        assert component.version == 1
        assert component.date_received == date(2024, 3, 4)
        assert component.condition_notes == "Oil leak at seal"
        assert notifier.kinds() == ["received"]

    def test_receive_appends_timeline_entry(self, kernel):
        kernel.receive_component("CMP-1", "Idler", from_unit_id="D85-04").unwrap()

        (entry,) = kernel.selector.timeline("CMP-1")
        assert entry.type is TimelineEventType.RECEIVED
        assert entry.title == "Component Received"
        assert entry.description == "Idler CMP-1 received from unit D85-04"

    def test_duplicate_id_fails(self, kernel):
        kernel.receive_component("CMP-1", "Idler").unwrap()
        result = kernel.receive_component("CMP-1", "Sprocket")

        assert result.code == "DUPLICATE_COMPONENT"
        assert isinstance(result.error, DuplicateComponentError)
        assert kernel.selector.component("CMP-1").type.value == "Idler"

    def test_unknown_type_is_a_programming_error(self, kernel):
        with pytest.raises(ValueError):
            kernel.receive_component("CMP-1", "Flux Capacitor")


class TestSimpleTransitions:

    def test_confirm_registration_moves_to_qa_1(self, kernel):
        component = receive_and_register(kernel)
        assert component.status is ComponentStatus.QA_1
        assert component.current_qa_stage == 1
        assert component.version == 2

        newest = kernel.selector.timeline(component.id)[0]
        assert newest.title == "Registered - Sent to QA-1"
        assert newest.actor == TEST_MECHANIC

    def test_confirm_registration_twice_fails(self, kernel):
        receive_and_register(kernel)
        result = kernel.confirm_registration("CMP-2024-001")

        assert result.code == "INVALID_TRANSITION"
        assert result.error.current_status == "qa-1"

    def test_hold_and_resume_repair(self, kernel):
        receive_and_register(kernel)

        held = kernel.hold_for_repair("CMP-2024-001", actor="Budi", note="Waiting on bearing").unwrap()
        assert held.status is ComponentStatus.WAITING_REPAIR
        assert held.current_qa_stage is None

        resumed = kernel.resume_repair("CMP-2024-001").unwrap()
        assert resumed.status is ComponentStatus.QA_1

    def test_return_from_vendor_only_from_vendor_repair(self, kernel):
        receive_and_register(kernel)
        result = kernel.return_from_vendor("CMP-2024-001")
        assert result.code == "INVALID_TRANSITION"

    def test_unknown_component_is_not_found(self, kernel):
        result = kernel.confirm_registration("CMP-404")
        assert result.code == "NOT_FOUND"
        assert isinstance(result.error, NotFoundError)


class TestApplyTransition:

    def test_accepts_event_string(self, kernel):
        receive_and_register(kernel)
        result = kernel.apply_transition("CMP-2024-001", "hold-for-repair")
        assert result.value.status is ComponentStatus.WAITING_REPAIR

    @pytest.mark.parametrize(
        "event,owner",
        [
            (LifecycleEvent.COMPLETE_STAGE, "complete_stage"),
            (LifecycleEvent.REQUEST_FABRICATION, "request_fabrication"),
        ],
    )
    def test_record_owned_events_refused(self, kernel, event, owner):
        receive_and_register(kernel)
        result = kernel.apply_transition(
            "CMP-2024-001", event, TransitionPayload(stage_completed=True),
        )

        assert isinstance(result.error, InvalidTransitionError)
        assert result.error.reason == f"use {owner}() for this event"
        assert kernel.selector.component("CMP-2024-001").status is ComponentStatus.QA_1

    def test_failed_transition_writes_nothing(self, kernel):
        receive_and_register(kernel)
        before = kernel.selector.timeline("CMP-2024-001")
        kernel.apply_transition("CMP-2024-001", LifecycleEvent.RESUME_REPAIR)

        assert kernel.selector.timeline("CMP-2024-001") == before
        assert kernel.selector.component("CMP-2024-001").version == 2


class TestVersionCheck:

    def test_stale_snapshot_loses(self, kernel):
        receive_and_register(kernel)
        snapshot = kernel.selector.component("CMP-2024-001")

        kernel.transitions.advance(snapshot, LifecycleEvent.HOLD_FOR_REPAIR)
        with pytest.raises(ConcurrentModificationError) as exc_info:
            kernel.transitions.advance(snapshot, LifecycleEvent.HOLD_FOR_REPAIR)

        assert exc_info.value.expected_version == snapshot.version
        assert exc_info.value.code == "CONCURRENT_MODIFICATION"
        titles = [e.title for e in kernel.selector.timeline("CMP-2024-001")]
        assert titles.count("Held for Repair") == 1


class TestNotificationIsolation:

    def test_failing_notifier_never_fails_transition(self, clock, captured_logs):
        kernel = LifecycleKernel(InMemoryPersistence(), notifier=ExplodingNotifier(), clock=clock)

        component = receive_and_register(kernel)

        assert component.status is ComponentStatus.QA_1
        warnings = [r for r in captured_logs() if r["message"] == "notification_failed"]
        assert len(warnings) == 2
        assert warnings[0]["level"] == "WARNING"
        assert warnings[0]["exc_type"] == "RuntimeError"

    def test_no_notifier_configured(self, clock):
        kernel = LifecycleKernel(InMemoryPersistence(), clock=clock)
        assert receive_and_register(kernel).status is ComponentStatus.QA_1


class TestBoundaryLogging:

    def test_transition_logged_with_context(self, kernel, captured_logs):
        receive_and_register(kernel)

        applied = [r for r in captured_logs() if r["message"] == "transition_applied"]
        assert applied[-1]["from_status"] == "received"
        assert applied[-1]["to_status"] == "qa-1"
        assert applied[-1]["operation"] == "confirm_registration"
        assert applied[-1]["component_id"] == "CMP-2024-001"

    def test_rejection_logged_with_error_code(self, kernel, captured_logs):
        kernel.confirm_registration("CMP-404")

        rejected = [r for r in captured_logs() if r["message"] == "operation_rejected"]
        assert rejected[0]["error_code"] == "NOT_FOUND"
        assert rejected[0]["operation"] == "confirm_registration"
