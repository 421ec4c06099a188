"""Manual (custom) schedule editing with percentage ⇄ amount derivation"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Union

from billing_gateway.domain.exceptions import (
    ScheduleRowNotFoundError,
    UnbalancedScheduleError,
    ZeroOrNegativeTotalError,
)
from billing_gateway.domain.installments import reconcile_installments
from billing_gateway.domain.models import Installment, ScheduleSummary
from billing_gateway.domain.ports import Clock
from billing_gateway.utils.date_utils import add_months, parse_date
from billing_gateway.utils.money import HUNDRED, Number, round2, to_decimal

ZERO = Decimal("0.00")
HALF = Decimal("50")


class RowField(str, Enum):
    """Editable columns of a custom schedule row"""

    DUE_DATE = "due_date"
    PERCENTAGE = "percentage"
    AMOUNT = "amount"


def percentage_to_amount(percentage: Number, total: Number) -> Decimal:
    return round2(to_decimal(percentage) / HUNDRED * to_decimal(total))


def amount_to_percentage(amount: Number, total: Number) -> Decimal:
    total = to_decimal(total)
    if total <= 0:
        raise ZeroOrNegativeTotalError(f"Total must be positive, got {total}")
    return round2(to_decimal(amount) / total * HUNDRED)


def _sum_percentage(rows: List[Installment]) -> Decimal:
    return sum((row.percentage for row in rows), ZERO)


def _sum_amount(rows: List[Installment]) -> Decimal:
    return sum((row.amount for row in rows), ZERO)


def _check_index(rows: List[Installment], index: int) -> None:
    if not 0 <= index < len(rows):
        raise ScheduleRowNotFoundError(f"No row at index {index} (schedule has {len(rows)} rows)")


def add_row(previous: List[Installment], total: Number, clock: Clock) -> List[Installment]:
    """
    Append a row carrying whatever is still unallocated.

    - Empty schedule: one row for 100% of the total, due today
    - Otherwise: due one month after the current last row, with the
      remaining percentage/amount (never negative)
    """
    total = round2(total)
    rows = list(previous)

    if not rows:
        rows.append(Installment(due_date=clock.today(), percentage=round2(HUNDRED), amount=total))
        return rows

    rows.append(
        Installment(
            due_date=add_months(rows[-1].due_date, 1),
            percentage=max(ZERO, round2(HUNDRED - _sum_percentage(rows))),
            amount=max(ZERO, round2(total - _sum_amount(rows))),
        )
    )
    return rows


def remove_row(rows: List[Installment], index: int, total: Number) -> List[Installment]:
    """Delete a row; any percentage shortfall moves onto the new last row"""
    _check_index(rows, index)
    remaining = rows[:index] + rows[index + 1:]
    if not remaining:
        return []

    shortfall = HUNDRED - _sum_percentage(remaining)
    if shortfall > 0:
        last = remaining[-1]
        last.percentage = round2(last.percentage + shortfall)
        last.amount = round2(last.amount + percentage_to_amount(shortfall, total))

    return remaining


def edit_field(
    rows: List[Installment],
    index: int,
    field: Union[RowField, str],
    value: Union[date, Number],
    total: Number,
) -> List[Installment]:
    """
    Change one field of one row.

    Percentage edits recompute that row's amount and amount edits recompute
    its percentage. No cross-row reconciliation happens here: the schedule
    may be out of balance until the user fixes it (see summarize).
    """
    _check_index(rows, index)
    try:
        field = RowField(field)
    except ValueError as e:
        raise ValueError(f"Unknown schedule field: {field!r}") from e

    row = rows[index]
    if field == RowField.DUE_DATE:
        row.due_date = parse_date(value)
    elif field == RowField.PERCENTAGE:
        percentage = round2(value)
        row.amount = percentage_to_amount(percentage, total)
        row.percentage = percentage
    else:
        amount = round2(value)
        row.percentage = amount_to_percentage(amount, total)
        row.amount = amount

    return rows


def summarize(rows: List[Installment], total: Number) -> ScheduleSummary:
    """Running totals and remaining gaps for a (possibly unbalanced) schedule"""
    percentage_total = round2(_sum_percentage(rows))
    amount_total = round2(_sum_amount(rows))
    return ScheduleSummary(
        count=len(rows),
        percentage_total=percentage_total,
        amount_total=amount_total,
        percentage_gap=round2(HUNDRED - percentage_total),
        amount_gap=round2(to_decimal(total) - amount_total),
    )


def validate_schedule(rows: List[Installment], total: Number) -> None:
    """
    Gate before persistence.

    Raises:
        UnbalancedScheduleError: empty schedule, a row out of range, or sums
        that do not match 100% / the total exactly
    """
    total = round2(total)
    if not rows:
        raise UnbalancedScheduleError("Schedule has no installments")

    for position, row in enumerate(rows, start=1):
        if not ZERO <= row.percentage <= HUNDRED:
            raise UnbalancedScheduleError(f"Installment {position}: percentage {row.percentage} outside 0-100")
        if not ZERO <= row.amount <= total:
            raise UnbalancedScheduleError(f"Installment {position}: amount {row.amount} outside 0-{total}")

    summary = summarize(rows, total)
    if summary.percentage_gap != 0:
        raise UnbalancedScheduleError(f"Percentages sum to {summary.percentage_total}, expected 100.00")
    if summary.amount_gap != 0:
        raise UnbalancedScheduleError(f"Amounts sum to {summary.amount_total}, expected {total}")


def seed_rows(start_date: date, total: Number) -> List[Installment]:
    """Starting point of a custom schedule: two 50% rows, one month apart"""
    total = round2(total)
    if total <= 0:
        raise ZeroOrNegativeTotalError(f"Total must be positive, got {total}")

    half = percentage_to_amount(HALF, total)
    rows = [
        Installment(due_date=start_date, percentage=round2(HALF), amount=half),
        Installment(due_date=add_months(start_date, 1), percentage=round2(HALF), amount=half),
    ]
    # Odd-cent totals would otherwise be a cent over
    return reconcile_installments(rows, total)
