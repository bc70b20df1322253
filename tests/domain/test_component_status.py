"""
Component status and value-object tests.

The QA stage of a component is derived from its status, so the two can
never disagree.
"""

from dataclasses import replace

import pytest

from rotable_kernel.domain.component import (
    APPROVAL_STATUSES,
    QA_STATUSES,
    STATUS_GROUPS,
    STATUS_LABELS,
    Component,
    ComponentStatus,
    ComponentType,
)


class TestCurrentQAStage:

    @pytest.mark.parametrize("stage", range(1, 8))
    def test_qa_status_maps_to_its_stage(self, stage):
        status = ComponentStatus(f"qa-{stage}")
        component = Component(id="CMP-1", type=ComponentType.IDLER, status=status)
        assert component.current_qa_stage == stage
        assert status.is_qa

    @pytest.mark.parametrize(
        "status", [s for s in ComponentStatus if s not in QA_STATUSES],
    )
    def test_non_qa_status_has_no_stage(self, status):
        component = Component(id="CMP-1", type=ComponentType.IDLER, status=status)
        assert component.current_qa_stage is None
        assert not status.is_qa

    def test_stage_follows_status_change(self):
        component = Component(id="CMP-1", type=ComponentType.SPROCKET, status=ComponentStatus.QA_3)
        moved = replace(component, status=ComponentStatus.RFU)
        assert component.current_qa_stage == 3
        assert moved.current_qa_stage is None

    def test_for_qa_stage_round_trips(self):
        for stage in range(1, 8):
            assert ComponentStatus.for_qa_stage(stage).qa_stage == stage

    @pytest.mark.parametrize("stage", [0, 8, -1])
    def test_for_qa_stage_rejects_unknown_stage(self, stage):
        with pytest.raises(ValueError):
            ComponentStatus.for_qa_stage(stage)


class TestStatusTables:

    def test_every_status_has_label_and_group(self):
        assert set(STATUS_LABELS) == set(ComponentStatus)
        assert set(STATUS_GROUPS) == set(ComponentStatus)

    def test_approval_statuses(self):
        assert APPROVAL_STATUSES == {
            ComponentStatus.WAITING_FABRICATION,
            ComponentStatus.WAITING_GL_APPROVAL,
            ComponentStatus.WAITING_PLANNER_APPROVAL,
        }

    def test_rfu_label(self):
        assert ComponentStatus.RFU.label == "Ready For Use"


class TestComponentValidation:

    def test_defaults(self):
        component = Component(id="CMP-1", type=ComponentType.FINAL_DRIVE)
        assert component.status is ComponentStatus.RECEIVED
        assert component.total_lifetime == 0
        assert component.cycles == 0
        assert component.version == 0

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            Component(id="", type=ComponentType.IDLER)

    @pytest.mark.parametrize("field", ["total_lifetime", "cycles", "version"])
    def test_negative_counters_rejected(self, field):
        with pytest.raises(ValueError):
            Component(id="CMP-1", type=ComponentType.IDLER, **{field: -1})

    @pytest.mark.parametrize(
        "field",
        ["from_unit_id", "condition_notes", "oem_part_number", "model_compatibility",
         "vendor_reference"],
    )
    def test_blank_optional_text_is_none(self, field):
        component = Component(id="CMP-1", type=ComponentType.IDLER, **{field: ""})
        assert getattr(component, field) is None
        assert component == Component(id="CMP-1", type=ComponentType.IDLER)

    def test_whitespace_text_is_kept(self):
        component = Component(id="CMP-1", type=ComponentType.IDLER, condition_notes=" ")
        assert component.condition_notes == " "

    def test_frozen(self):
        component = Component(id="CMP-1", type=ComponentType.IDLER)
        with pytest.raises(AttributeError):
            component.status = ComponentStatus.RFU  # type: ignore[misc]

    def test_type_accepts_display_value(self):
        assert ComponentType("Track Chain") is ComponentType.TRACK_CHAIN
