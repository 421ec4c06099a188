"""Unit tests for installment schedule generation"""

import pytest
from datetime import date
from decimal import Decimal
from billing_gateway.domain.exceptions import (
    InvalidDateError,
    InvalidInstallmentCountError,
    InvalidPeriodicityError,
    ZeroOrNegativeTotalError,
)
from billing_gateway.domain.installments import (
    generate_installments,
    generate_schedule,
    reconcile_installments,
)
from billing_gateway.domain.models import Installment, Periodicity, PERIOD_MONTHS

GENERATED = [p for p in Periodicity if p != Periodicity.CUSTOM]


def test_generate_schedule_monthly_equal_split():
    """1200.00 over 12 months: 8.33% x11 and the residual on the last row"""
    installments = generate_schedule(Decimal("1200.00"), date(2024, 1, 15), Periodicity.MONTHLY, 12)

    assert len(installments) == 12
    assert all(inst.amount == Decimal("100.00") for inst in installments)
    assert [inst.percentage for inst in installments[:11]] == [Decimal("8.33")] * 11
    assert installments[-1].percentage == Decimal("8.37")
    assert [inst.due_date.month for inst in installments] == list(range(1, 13))


def test_generate_schedule_quarterly_increasing_split():
    """Increasing split weighs installment i by (i+1)"""
    installments = generate_schedule(
        Decimal("1000.00"), date(2024, 1, 15), Periodicity.QUARTERLY, 4, equal_split=False
    )

    assert [inst.percentage for inst in installments] == [
        Decimal("10.00"),
        Decimal("20.00"),
        Decimal("30.00"),
        Decimal("40.00"),
    ]
    assert [inst.amount for inst in installments] == [
        Decimal("100.00"),
        Decimal("200.00"),
        Decimal("300.00"),
        Decimal("400.00"),
    ]
    assert [inst.due_date for inst in installments] == [
        date(2024, 1, 15),
        date(2024, 4, 15),
        date(2024, 7, 15),
        date(2024, 10, 15),
    ]


def test_generate_installments_is_not_reconciled():
    """Raw allocation leaves the rounding residual in place"""
    installments = generate_installments(Decimal("100.00"), "2024-01-01", Periodicity.MONTHLY, 3)

    assert [inst.percentage for inst in installments] == [Decimal("33.33")] * 3
    assert sum(inst.amount for inst in installments) == Decimal("99.99")


def test_reconcile_moves_residual_to_last_row():
    installments = generate_installments(Decimal("100.00"), "2024-01-01", Periodicity.MONTHLY, 3)
    reconciled = reconcile_installments(installments, Decimal("100.00"))

    assert reconciled is installments
    assert reconciled[-1].percentage == Decimal("33.34")
    assert reconciled[-1].amount == Decimal("33.34")
    assert reconciled[0].amount == Decimal("33.33")


def test_reconcile_empty_schedule():
    assert reconcile_installments([], Decimal("100.00")) == []


def test_single_installment_takes_everything():
    installments = generate_schedule(Decimal("99.99"), "2024-05-10", Periodicity.ANNUAL, 1)

    assert installments == [Installment(date(2024, 5, 10), Decimal("100.00"), Decimal("99.99"))]


@pytest.mark.parametrize("periodicity", GENERATED)
@pytest.mark.parametrize("equal_split", [True, False])
def test_generated_schedules_always_balance(periodicity: Periodicity, equal_split: bool):
    """Every count from 1 to 60 sums to exactly 100% and the total"""
    total = Decimal("1234.57")
    start = date(2024, 1, 31)
    for count in range(1, 61):
        installments = generate_schedule(total, start, periodicity, count, equal_split)

        assert len(installments) == count
        assert sum(inst.percentage for inst in installments) == Decimal("100.00")
        assert sum(inst.amount for inst in installments) == total
        assert all(inst.percentage >= 0 and inst.amount >= 0 for inst in installments)

        dates = [inst.due_date for inst in installments]
        assert all(earlier < later for earlier, later in zip(dates, dates[1:]))
        if periodicity == Periodicity.ANNUAL:
            assert [d.year - start.year for d in dates] == list(range(count))
        else:
            period = PERIOD_MONTHS[periodicity]
            for i, due in enumerate(dates):
                assert (due.month - start.month) % 12 == (i * period) % 12


def test_generation_is_idempotent():
    first = generate_schedule(Decimal("777.77"), "2024-03-31", Periodicity.FOUR_MONTH, 7, equal_split=False)
    second = generate_schedule(Decimal("777.77"), "2024-03-31", Periodicity.FOUR_MONTH, 7, equal_split=False)

    assert first == second


def test_monthly_dates_clamp_to_month_end():
    """Dates are measured from the start, so 31 Jan keeps returning to day 31"""
    installments = generate_schedule(Decimal("400.00"), date(2024, 1, 31), Periodicity.MONTHLY, 4)

    assert [inst.due_date for inst in installments] == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


def test_semi_annual_dates():
    installments = generate_schedule(Decimal("300.00"), date(2024, 8, 31), Periodicity.SEMI_ANNUAL, 3)

    assert [inst.due_date for inst in installments] == [
        date(2024, 8, 31),
        date(2025, 2, 28),
        date(2025, 8, 31),
    ]


def test_annual_dates_from_leap_day():
    installments = generate_schedule(Decimal("300.00"), date(2024, 2, 29), Periodicity.ANNUAL, 3)

    assert [inst.due_date for inst in installments] == [
        date(2024, 2, 29),
        date(2025, 2, 28),
        date(2026, 2, 28),
    ]


@pytest.mark.parametrize("total", [Decimal("0"), Decimal("-10.00"), "0.001"])
def test_non_positive_total_rejected(total):
    with pytest.raises(ZeroOrNegativeTotalError):
        generate_schedule(total, "2024-01-01", Periodicity.MONTHLY, 12)


@pytest.mark.parametrize("count", [0, -1, 61])
def test_count_out_of_range_rejected(count: int):
    with pytest.raises(InvalidInstallmentCountError):
        generate_schedule(Decimal("100.00"), "2024-01-01", Periodicity.MONTHLY, count)


@pytest.mark.parametrize("start_date", ["2024-02-30", "not-a-date", ""])
def test_invalid_start_date_rejected(start_date: str):
    with pytest.raises(InvalidDateError):
        generate_schedule(Decimal("100.00"), start_date, Periodicity.MONTHLY, 12)


def test_custom_periodicity_is_not_generated():
    with pytest.raises(InvalidPeriodicityError):
        generate_schedule(Decimal("100.00"), "2024-01-01", Periodicity.CUSTOM, 2)


def test_total_too_small_for_count_rejected():
    """Four installments need at least 0.04"""
    with pytest.raises(InvalidInstallmentCountError):
        generate_schedule(Decimal("0.02"), date(2024, 1, 1), Periodicity.MONTHLY, 4)

    installments = generate_schedule(Decimal("0.04"), date(2024, 1, 1), Periodicity.MONTHLY, 4)
    assert [inst.amount for inst in installments] == [Decimal("0.01")] * 4


def test_small_totals_never_go_negative():
    """0.90 / 60 rounds every row up to 0.02; the excess is carried back from the end"""
    installments = generate_schedule(Decimal("0.90"), date(2024, 1, 1), Periodicity.MONTHLY, 60)

    assert sum(inst.amount for inst in installments) == Decimal("0.90")
    assert sum(inst.percentage for inst in installments) == Decimal("100.00")
    assert all(inst.amount >= 0 for inst in installments)
    assert [inst.amount for inst in installments[-15:]] == [Decimal("0.00")] * 15
    assert installments[-16].amount == Decimal("0.02")


def test_reconcile_carries_negative_residual():
    installments = [
        Installment(date(2024, 1, 1), Decimal("33.33"), Decimal("0.02")),
        Installment(date(2024, 2, 1), Decimal("33.33"), Decimal("0.02")),
        Installment(date(2024, 3, 1), Decimal("33.33"), Decimal("0.02")),
    ]
    reconcile_installments(installments, Decimal("0.03"))

    assert [inst.amount for inst in installments] == [Decimal("0.02"), Decimal("0.01"), Decimal("0.00")]
    assert [inst.percentage for inst in installments] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
