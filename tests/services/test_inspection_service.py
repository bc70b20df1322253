"""
QA Stage Controller tests.

Covers stage gating (order and checklist), record stamping, re-inspection
after a removal, fabrication requests and the per-pass stage view.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from rotable_kernel.domain.component import ComponentStatus
from rotable_kernel.domain.fabrication import FabricationReason, FabricationStatus
from rotable_kernel.domain.inspection import QAChecklistItem, QAStatus
from rotable_kernel.domain.timeline import TimelineEventType
from rotable_kernel.exceptions import (
    AlreadyHasOpenRequestError,
    ChecklistIncompleteError,
    StageOutOfOrderError,
    UnknownStageError,
)
from tests.conftest import (
    TEST_MECHANIC,
    full_checklist,
    make_rfu,
    pass_stages,
    receive_and_register,
)

CID = "CMP-2024-001"


class TestCompleteStage:

    def test_complete_stage_advances_one_stage(self, kernel, clock):
        receive_and_register(kernel)
        result = kernel.complete_stage(
            CID, 1, TEST_MECHANIC, notes="Visual OK", checklist_items=full_checklist(1),
        )

        assert result.is_ok
        record = result.value
        assert record.status is QAStatus.COMPLETED
        assert record.mechanic_name == TEST_MECHANIC
        assert record.date_updated == clock.now()
        assert record.notes == "Visual OK"

        component = kernel.selector.component(CID)
        assert component.status is ComponentStatus.QA_2
        assert component.current_qa_stage == 2

    def test_all_seven_stages_reach_rfu(self, kernel, notifier):
        component = make_rfu(kernel)

        assert component.status is ComponentStatus.RFU
        assert component.current_qa_stage is None
        newest = kernel.selector.timeline(CID)[0]
        assert newest.type is TimelineEventType.RFU
        assert newest.title == "QA-7 Completed - Ready For Use"
        assert notifier.kinds()[-1] == "rfu"

    def test_one_unchecked_item_fails(self, kernel):
        receive_and_register(kernel)
        items = full_checklist(1)
        items = items[:2] + (QAChecklistItem(items[2].id, items[2].label, checked=False),) + items[3:]

        result = kernel.complete_stage(CID, 1, TEST_MECHANIC, checklist_items=items)

        assert isinstance(result.error, ChecklistIncompleteError)
        assert result.error.unchecked == ("Documentation complete",)
        assert kernel.selector.component(CID).status is ComponentStatus.QA_1
        assert kernel.persistence.load_qa_record(CID, 1) is None

    def test_empty_checklist_fails(self, kernel):
        receive_and_register(kernel)
        result = kernel.complete_stage(CID, 1, TEST_MECHANIC)
        assert result.code == "CHECKLIST_INCOMPLETE"
        assert len(result.error.unchecked) == 4

    def test_skipping_a_stage_fails(self, kernel):
        receive_and_register(kernel)
        result = kernel.complete_stage(CID, 2, TEST_MECHANIC, checklist_items=full_checklist(2))

        assert isinstance(result.error, StageOutOfOrderError)
        assert result.error.current_stage == 1
        assert kernel.selector.component(CID).status is ComponentStatus.QA_1

    def test_repeating_a_completed_stage_fails(self, kernel):
        receive_and_register(kernel)
        kernel.complete_stage(CID, 1, TEST_MECHANIC, checklist_items=full_checklist(1)).unwrap()
        result = kernel.complete_stage(CID, 1, TEST_MECHANIC, checklist_items=full_checklist(1))

        assert result.code == "STAGE_OUT_OF_ORDER"

    def test_component_outside_qa_fails(self, kernel):
        kernel.receive_component(CID, "Idler").unwrap()
        result = kernel.complete_stage(CID, 1, TEST_MECHANIC, checklist_items=full_checklist(1))

        assert result.code == "STAGE_OUT_OF_ORDER"
        assert result.error.current_stage is None

    @pytest.mark.parametrize("stage", [0, 8])
    def test_unknown_stage(self, kernel, stage):
        receive_and_register(kernel)
        result = kernel.complete_stage(CID, stage, TEST_MECHANIC)
        assert isinstance(result.error, UnknownStageError)

    def test_unknown_component(self, kernel):
        assert kernel.complete_stage("CMP-404", 1, TEST_MECHANIC).code == "NOT_FOUND"

    def test_stage_completion_logged(self, kernel, captured_logs):
        receive_and_register(kernel)
        kernel.complete_stage(CID, 1, TEST_MECHANIC, checklist_items=full_checklist(1))

        (entry,) = [r for r in captured_logs() if r["message"] == "stage_completed"]
        assert entry["stage"] == 1
        assert entry["stage_name"] == "Delivery Inspection"
        assert entry["reinspection"] is False
        assert entry["actor_id"] == TEST_MECHANIC


class TestReinspection:

    def test_second_pass_overwrites_record_and_keeps_id(self, kernel, clock):
        make_rfu(kernel)
        first = kernel.persistence.load_qa_record(CID, 1)
        install = kernel.install(CID, "EX-2200-017", 12500).unwrap()
        kernel.remove(install.id, 12870).unwrap()

        clock.advance(3600)
        second = kernel.complete_stage(
            CID, 1, "Other Mechanic", checklist_items=full_checklist(1),
        ).unwrap()

        assert second.id == first.id
        assert second.mechanic_name == "Other Mechanic"
        assert second.date_updated > first.date_updated
        assert len(kernel.persistence.list_qa_records(CID)) == 7


class TestStageRecords:

    def test_fresh_component_shows_seven_pending(self, kernel):
        receive_and_register(kernel)
        records = kernel.stage_records(CID).unwrap()

        assert [r.stage for r in records] == list(range(1, 8))
        assert all(r.status is QAStatus.PENDING for r in records)

    def test_mid_pass_shows_completed_below_current(self, kernel):
        receive_and_register(kernel)
        pass_stages(kernel, CID, 1, 3)

        statuses = [r.status for r in kernel.stage_records(CID).unwrap()]
        assert statuses == [QAStatus.COMPLETED] * 3 + [QAStatus.PENDING] * 4

    def test_rfu_shows_all_completed(self, kernel):
        make_rfu(kernel)
        records = kernel.stage_records(CID).unwrap()
        assert all(r.is_completed for r in records)

    def test_new_pass_hides_stale_records(self, kernel):
        make_rfu(kernel)
        install = kernel.install(CID, "EX-2200-017", 100).unwrap()
        kernel.remove(install.id, 200).unwrap()

        records = kernel.stage_records(CID).unwrap()
        assert not any(r.is_completed for r in records)


class TestRequestFabrication:

    def test_request_moves_component_to_gl_approval(self, kernel, clock):
        receive_and_register(kernel)
        result = kernel.request_fabrication(
            CID, "major-damage", "PT Hydraulic Works", "18500000.00", TEST_MECHANIC,
            attachment="photos/cmp-2024-001.jpg",
        )

        request = result.unwrap()
        assert request.status is FabricationStatus.PENDING
        assert request.reason is FabricationReason.MAJOR_DAMAGE
        assert request.estimated_cost == Decimal("18500000.00")
        assert request.created_at == clock.now()
        assert request.component_type.value == "Track Roller"
        assert kernel.selector.component(CID).status is ComponentStatus.WAITING_GL_APPROVAL

        newest = kernel.selector.timeline(CID)[0]
        assert newest.type is TimelineEventType.FABRICATION
        assert "PT Hydraulic Works" in newest.description

    def test_only_legal_from_qa_1(self, kernel):
        receive_and_register(kernel)
        pass_stages(kernel, CID, 1, 1)
        result = kernel.request_fabrication(CID, "no-tools", "Vendor", 100, TEST_MECHANIC)

        assert result.code == "INVALID_TRANSITION"
        assert kernel.persistence.list_fabrication_requests(CID) == []

    def test_second_open_request_fails(self, kernel):
        receive_and_register(kernel)
        first = kernel.request_fabrication(CID, "no-tools", "Vendor A", 100, TEST_MECHANIC).unwrap()
        result = kernel.request_fabrication(CID, "warranty", "Vendor B", 200, TEST_MECHANIC)

        assert isinstance(result.error, AlreadyHasOpenRequestError)
        assert result.error.request_id == str(first.id)

    def test_new_request_allowed_after_rejection(self, kernel):
        receive_and_register(kernel)
        first = kernel.request_fabrication(CID, "no-tools", "Vendor A", 100, TEST_MECHANIC).unwrap()
        kernel.reject(first.id, "Agus", "gl", "Repair in-house").unwrap()

        second = kernel.request_fabrication(CID, "specialized", "Vendor B", 300, TEST_MECHANIC)
        assert second.is_ok

    def test_negative_cost_is_a_programming_error(self, kernel):
        receive_and_register(kernel)
        with pytest.raises(ValueError):
            kernel.request_fabrication(CID, "no-tools", "Vendor", -1, TEST_MECHANIC)

    def test_request_created_at_is_utc(self, kernel):
        receive_and_register(kernel)
        request = kernel.request_fabrication(CID, "no-tools", "V", 1, TEST_MECHANIC).unwrap()
        assert request.created_at.tzinfo == timezone.utc
        assert isinstance(request.created_at, datetime)
