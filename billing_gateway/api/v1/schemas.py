"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Annotated, List, Optional, Union

from pydantic import BaseModel, Field, PlainSerializer

from billing_gateway.config import settings
from billing_gateway.domain.custom_schedule import RowField
from billing_gateway.domain.models import Bracket, BracketMatch, Installment, Periodicity, ScheduleSummary

# Money/percentages travel as JSON numbers with two decimals
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Totals accepted from clients fit the Numeric(12, 2) money columns
MoneyInput = Annotated[Decimal, Field(max_digits=12, decimal_places=2)]


class InstallmentSchema(BaseModel):
    """Single installment in a billing schedule"""

    due_date: date
    percentage: Money
    amount: Money

    @classmethod
    def from_domain(cls, installment: Installment) -> "InstallmentSchema":
        return cls(due_date=installment.due_date, percentage=installment.percentage, amount=installment.amount)

    def to_domain(self) -> Installment:
        return Installment(due_date=self.due_date, percentage=self.percentage, amount=self.amount)


class PreviewRequest(BaseModel):
    """Request body for POST /v1/schedules/preview"""

    total: MoneyInput = Field(..., description="Contract total to split")
    start_date: str = Field(..., description="First due date (YYYY-MM-DD)")
    periodicity: Periodicity = Periodicity.MONTHLY
    count: int = Field(12, description="Number of installments (1-60)")
    equal_split: bool = True


class CustomScheduleRequest(BaseModel):
    """Custom schedule posted back by the client for one edit step"""

    total: MoneyInput
    installments: List[InstallmentSchema] = Field(default_factory=list)

    def rows(self) -> List[Installment]:
        return [inst.to_domain() for inst in self.installments]


class RemoveRowRequest(CustomScheduleRequest):
    index: int = Field(..., ge=0)


class EditRowRequest(CustomScheduleRequest):
    index: int = Field(..., ge=0)
    field: RowField
    value: Union[Decimal, date, str]


class ScheduleResponse(BaseModel):
    """Schedule with its running totals"""

    total: Money
    currency: str = settings.currency
    installments: List[InstallmentSchema]
    percentage_total: Money
    amount_total: Money
    balanced: bool

    @classmethod
    def build(cls, total: Decimal, installments: List[Installment], summary: ScheduleSummary, **extra):
        return cls(
            total=total,
            installments=[InstallmentSchema.from_domain(inst) for inst in installments],
            percentage_total=summary.percentage_total,
            amount_total=summary.amount_total,
            balanced=summary.balanced,
            **extra,
        )


class SavedScheduleResponse(ScheduleResponse):
    """Response for PUT /v1/contracts/{contract_id}/schedule"""

    contract_id: int
    state: str


class BracketSchema(BaseModel):
    name: str
    year: int
    min_units: int
    max_units: Optional[int] = None
    rate: Money
    hours: Money
    amount: Money
    description: str = ""

    @classmethod
    def from_domain(cls, bracket: Bracket, amount: Decimal) -> "BracketSchema":
        return cls(
            name=bracket.name,
            year=bracket.year,
            min_units=bracket.min_units,
            max_units=bracket.max_units,
            rate=bracket.rate,
            hours=bracket.hours,
            amount=amount,
            description=bracket.description,
        )


class BracketListResponse(BaseModel):
    """Response for GET /v1/brackets"""

    year: Optional[int] = None
    brackets: List[BracketSchema]


class BracketMatchResponse(BaseModel):
    """Response for GET /v1/brackets/match (a miss is not an error)"""

    matched: bool
    units: int
    year: int
    fallback: bool = False
    auto_select: bool = True
    bracket_name: Optional[str] = None
    amount: Optional[Money] = None

    @classmethod
    def build(
        cls, match: Optional[BracketMatch], units: int, year: int, fallback: bool, auto_select: bool
    ) -> "BracketMatchResponse":
        return cls(
            matched=match is not None,
            units=units,
            year=year,
            fallback=fallback,
            auto_select=auto_select,
            bracket_name=match.bracket.name if match else None,
            amount=match.amount if match else None,
        )
