"""Installment schedule generation and rounding reconciliation"""

from datetime import date
from decimal import Decimal
from typing import List, Union

from billing_gateway.config import settings
from billing_gateway.domain.exceptions import (
    InvalidInstallmentCountError,
    InvalidPeriodicityError,
    ZeroOrNegativeTotalError,
)
from billing_gateway.domain.models import Installment, Periodicity, PERIOD_MONTHS
from billing_gateway.utils.date_utils import add_months, add_years, parse_date
from billing_gateway.utils.money import CENT, HUNDRED, Number, round2, to_decimal


def due_date_for(start_date: date, periodicity: Periodicity, index: int) -> date:
    """Due date of installment `index` (0-based), always measured from the start date"""
    if periodicity == Periodicity.ANNUAL:
        return add_years(start_date, index)
    return add_months(start_date, index * PERIOD_MONTHS[periodicity])


def validate_generation_params(total: Number, periodicity: Periodicity, count: int) -> Decimal:
    """Check allocator inputs, returning the total rounded to cents"""
    total = round2(total)
    if total <= 0:
        raise ZeroOrNegativeTotalError(f"Total must be positive, got {total}")

    if periodicity == Periodicity.CUSTOM:
        raise InvalidPeriodicityError("Custom schedules are edited row by row, not generated")

    if not 1 <= count <= settings.max_installments:
        raise InvalidInstallmentCountError(
            f"Installment count must be between 1 and {settings.max_installments}, got {count}"
        )

    # Every installment must carry at least one cent
    if total < count * CENT:
        raise InvalidInstallmentCountError(f"Total {total} cannot be split into {count} installments")

    return total


def generate_installments(
    total: Number,
    start_date: Union[date, str],
    periodicity: Periodicity,
    count: int,
    equal_split: bool = True,
) -> List[Installment]:
    """
    Split a total into dated installments, each rounded to cents independently.

    Split policies:
    - Equal: every installment gets 100/count percent and total/count
    - Increasing: installment i weighs (i+1), so percentages grow linearly
      and sum to 100 (i+1)*2*100 / (count*(count+1))

    The output is NOT reconciled; see reconcile_installments.

    Raises:
        InvalidDateError: start_date is not a valid calendar date
        ZeroOrNegativeTotalError: total <= 0
        InvalidInstallmentCountError: count outside 1..max_installments
        InvalidPeriodicityError: periodicity is CUSTOM

    Example:
        1000.00 quarterly x4, increasing → 10%, 20%, 30%, 40%
    """
    start = parse_date(start_date)
    periodicity = Periodicity(periodicity)
    total = validate_generation_params(total, periodicity, count)

    installments = []
    for i in range(count):
        if equal_split:
            raw_percentage = HUNDRED / count
            raw_amount = total / count
        else:
            raw_percentage = Decimal((i + 1) * 2 * 100) / Decimal(count * (count + 1))
            raw_amount = raw_percentage / HUNDRED * total

        installments.append(
            Installment(
                due_date=due_date_for(start, periodicity, i),
                percentage=round2(raw_percentage),
                amount=round2(raw_amount),
            )
        )

    return installments


def reconcile_installments(installments: List[Installment], total: Number) -> List[Installment]:
    """
    Force percentages to sum to 100.00 and amounts to the total.

    The whole residual lands on the last installment, so it may look slightly
    off for large counts: 1200.00 monthly x12 → 8.33% x11 + 8.37%.
    A negative residual larger than the last installment is carried back onto
    the previous ones, so no installment drops below zero.
    Mutates the list in place and returns it.
    """
    if not installments:
        return installments

    total = to_decimal(total)
    percentage_deficit = HUNDRED - sum((inst.percentage for inst in installments), Decimal("0"))
    amount_deficit = total - sum((inst.amount for inst in installments), Decimal("0"))

    for inst in reversed(installments):
        inst.percentage = round2(inst.percentage + percentage_deficit)
        inst.amount = round2(inst.amount + amount_deficit)
        percentage_deficit = min(inst.percentage, Decimal("0"))
        amount_deficit = min(inst.amount, Decimal("0"))
        inst.percentage -= percentage_deficit
        inst.amount -= amount_deficit
        if not percentage_deficit and not amount_deficit:
            break

    return installments


def generate_schedule(
    total: Number,
    start_date: Union[date, str],
    periodicity: Periodicity,
    count: int,
    equal_split: bool = True,
) -> List[Installment]:
    """Generate installments and reconcile rounding so the schedule balances exactly"""
    installments = generate_installments(total, start_date, periodicity, count, equal_split)
    return reconcile_installments(installments, round2(total))
