"""Domain models - pure Python dataclasses representing billing entities"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional


class Periodicity(str, Enum):
    """How far apart generated installments fall"""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    FOUR_MONTH = "four_month"
    SEMI_ANNUAL = "semi_annual"
    ANNUAL = "annual"
    CUSTOM = "custom"  # Manual rows, never generated


# Months between installments; ANNUAL advances the year instead
PERIOD_MONTHS = {
    Periodicity.MONTHLY: 1,
    Periodicity.QUARTERLY: 3,
    Periodicity.FOUR_MONTH: 4,
    Periodicity.SEMI_ANNUAL: 6,
}


@dataclass
class Installment:
    """Single dated portion of a billable total"""

    due_date: date
    percentage: Decimal
    amount: Decimal


@dataclass(frozen=True)
class Bracket:
    """Pricing tier for a payroll-slip range, scoped to a year"""

    name: str
    year: int
    rate: Decimal
    min_units: int = 1
    max_units: Optional[int] = None  # None = unbounded
    hours: Decimal = Decimal("1")
    description: str = ""

    def covers(self, units: int) -> bool:
        upper = self.max_units if self.max_units is not None else units
        return self.min_units <= units <= upper


@dataclass(frozen=True)
class BracketMatch:
    """Bracket selected for a usage count, with its billable amount"""

    bracket: Bracket
    units: int
    amount: Decimal


@dataclass(frozen=True)
class ScheduleSummary:
    """Running totals shown while a schedule is being edited"""

    count: int
    percentage_total: Decimal
    amount_total: Decimal
    percentage_gap: Decimal  # 100 - percentage_total
    amount_gap: Decimal  # total - amount_total

    @property
    def balanced(self) -> bool:
        return self.count > 0 and self.percentage_gap == 0 and self.amount_gap == 0
