"""Install-cycle arithmetic: exact lifetime, single accrual, safe averages."""

from datetime import date
from decimal import Decimal

import pytest

from rotable_kernel.domain.component import Component, ComponentStatus, ComponentType
from rotable_kernel.domain.installation import (
    LifetimeSummary,
    accrue_cycle,
    close_record,
    open_record,
    validate_hm_start,
)
from rotable_kernel.exceptions import InvalidHourMeterError


def _component(**overrides) -> Component:
    fields = dict(id="CMP-2024-001", type=ComponentType.TRACK_ROLLER, status=ComponentStatus.RFU)
    fields.update(overrides)
    return Component(**fields)


class TestOpenRecord:

    def test_open_record_fields(self):
        record = open_record(_component(), "EX-2200-017", 12500, date(2024, 3, 10))
        assert record.is_open
        assert record.component_type is ComponentType.TRACK_ROLLER
        assert record.hm_start == 12500
        assert record.lifetime is None

    @pytest.mark.parametrize("bad", [-1, 1.5, "100", True, None])
    def test_bad_hm_start_rejected(self, bad):
        with pytest.raises(InvalidHourMeterError):
            validate_hm_start(bad)

    def test_zero_hm_start_allowed(self):
        assert validate_hm_start(0) == 0


class TestCloseRecord:

    def test_lifetime_is_exact_difference(self):
        record = open_record(_component(), "EX-2200-017", 12500, date(2024, 3, 10))
        closed = close_record(record, 12870, date(2024, 6, 1), "Worn bushing")

        assert closed.lifetime == 370
        assert not closed.is_open
        assert closed.removal_reason == "Worn bushing"
        assert closed.id == record.id

    def test_equal_readings_give_zero_lifetime(self):
        record = open_record(_component(), "U-1", 100, date(2024, 3, 10))
        assert close_record(record, 100, date(2024, 3, 11)).lifetime == 0

    def test_backwards_meter_rejected(self):
        record = open_record(_component(), "U-1", 12500, date(2024, 3, 10))
        with pytest.raises(InvalidHourMeterError) as exc_info:
            close_record(record, 12499, date(2024, 3, 11))
        assert exc_info.value.hm_start == 12500
        assert exc_info.value.hm_end == 12499

    @pytest.mark.parametrize("bad", [-5, 12870.0, False])
    def test_non_integer_or_negative_end_rejected(self, bad):
        record = open_record(_component(), "U-1", 0, date(2024, 3, 10))
        with pytest.raises(InvalidHourMeterError):
            close_record(record, bad, date(2024, 3, 11))


class TestAccrual:

    def test_accrue_adds_one_cycle_and_lifetime(self):
        component = _component(total_lifetime=1000, cycles=2)
        record = open_record(component, "U-1", 12500, date(2024, 3, 10))
        accrued = accrue_cycle(component, close_record(record, 12870, date(2024, 6, 1)))

        assert accrued.total_lifetime == 1370
        assert accrued.cycles == 3

    def test_accrue_open_record_is_a_programming_error(self):
        component = _component()
        record = open_record(component, "U-1", 1, date(2024, 3, 10))
        with pytest.raises(ValueError):
            accrue_cycle(component, record)


class TestLifetimeSummary:

    def test_average_undefined_without_cycles(self):
        summary = LifetimeSummary.of(_component())
        assert summary.average_lifetime_per_cycle is None

    def test_average_is_exact_decimal(self):
        summary = LifetimeSummary.of(_component(total_lifetime=1000, cycles=3))
        assert summary.average_lifetime_per_cycle == Decimal(1000) / Decimal(3)

    def test_average_whole_number(self):
        summary = LifetimeSummary(component_id="C", total_lifetime=740, cycles=2)
        assert summary.average_lifetime_per_cycle == Decimal(370)
