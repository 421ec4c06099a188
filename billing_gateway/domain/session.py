"""Schedule session - per-user editing state around schedule generation"""

import copy
import logging
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from billing_gateway.config import settings
from billing_gateway.domain import custom_schedule
from billing_gateway.domain.custom_schedule import RowField
from billing_gateway.domain.exceptions import ScheduleStateError, ZeroOrNegativeTotalError
from billing_gateway.domain.installments import generate_schedule
from billing_gateway.domain.models import BracketMatch, Installment, Periodicity, ScheduleSummary
from billing_gateway.domain.ports import Clock, Ledger
from billing_gateway.infrastructure.observability.logging import log_schedule_generated, log_schedule_saved
from billing_gateway.infrastructure.observability.metrics import record_schedule_generated, record_schedule_saved
from billing_gateway.utils.date_utils import parse_date
from billing_gateway.utils.money import Number, round2

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    PREVIEWING = "previewing"
    EDITING = "editing"  # Previewing a custom schedule
    SAVED = "saved"


class ScheduleSession:
    """
    Orchestrates schedule generation for one contract.

    Flow:
    1. Parameter changes regenerate and reconcile the whole schedule
    2. Switching to CUSTOM seeds two 50% rows and allows row editing
    3. save() validates the schedule and hands it to the ledger

    Every failure leaves the previous parameters, installments and state in
    place, so the session is always editable.
    """

    PARAMETERS = ("total", "start_date", "periodicity", "count", "equal_split")

    def __init__(
        self,
        contract_id: int,
        ledger: Ledger,
        clock: Clock,
        total: Number,
        start_date: Union[date, str, None] = None,
        periodicity: Periodicity = Periodicity.MONTHLY,
        count: Optional[int] = None,
        equal_split: bool = True,
    ):
        self.contract_id = contract_id
        self.ledger = ledger
        self.clock = clock
        self.state = SessionState.IDLE
        self._params: Dict[str, Any] = {
            "total": round2(total),
            "start_date": parse_date(start_date) if start_date is not None else clock.today(),
            "periodicity": Periodicity(periodicity),
            "count": count if count is not None else settings.default_installments,
            "equal_split": equal_split,
        }
        self._installments: List[Installment] = []

    # -- read side -------------------------------------------------------

    @property
    def total(self) -> Decimal:
        return self._params["total"]

    @property
    def start_date(self) -> date:
        return self._params["start_date"]

    @property
    def periodicity(self) -> Periodicity:
        return self._params["periodicity"]

    @property
    def count(self) -> int:
        return self._params["count"]

    @property
    def equal_split(self) -> bool:
        return self._params["equal_split"]

    @property
    def is_custom(self) -> bool:
        return self.periodicity == Periodicity.CUSTOM

    @property
    def installments(self) -> List[Installment]:
        return copy.deepcopy(self._installments)

    @property
    def summary(self) -> ScheduleSummary:
        return custom_schedule.summarize(self._installments, self.total)

    # -- parameter changes -----------------------------------------------

    def start(self) -> List[Installment]:
        """Build the first schedule from the constructor parameters"""
        return self.update()

    def update(self, **changes: Any) -> List[Installment]:
        """
        Apply parameter changes and rebuild the schedule.

        Raises whatever the allocator raises (InvalidDateError,
        ZeroOrNegativeTotalError, ...) with the session left untouched.
        """
        unknown = set(changes) - set(self.PARAMETERS)
        if unknown:
            raise TypeError(f"Unknown schedule parameters: {sorted(unknown)}")

        params = dict(self._params)
        if "total" in changes:
            params["total"] = round2(changes["total"])
        if "start_date" in changes:
            params["start_date"] = parse_date(changes["start_date"])
        if "periodicity" in changes:
            params["periodicity"] = Periodicity(changes["periodicity"])
        if "count" in changes:
            params["count"] = int(changes["count"])
        if "equal_split" in changes:
            params["equal_split"] = bool(changes["equal_split"])

        if params["periodicity"] == Periodicity.CUSTOM:
            installments = self._custom_rows_for(params, changes)
            self._commit(params, installments, SessionState.EDITING)
        else:
            previous_state = self.state
            self.state = SessionState.GENERATING
            try:
                installments = generate_schedule(
                    params["total"],
                    params["start_date"],
                    params["periodicity"],
                    params["count"],
                    params["equal_split"],
                )
            except Exception:
                self.state = previous_state
                raise
            self._commit(params, installments, SessionState.PREVIEWING)
            record_schedule_generated(params["periodicity"].value, params["equal_split"])
            log_schedule_generated(self.contract_id, params["periodicity"].value, len(installments), params["total"])

        return self.installments

    def apply_bracket_match(self, match: BracketMatch) -> List[Installment]:
        """Use a bracket's billable amount as the schedule total"""
        return self.update(total=match.amount)

    def load_rows(self, rows: List[Installment], total: Optional[Number] = None) -> List[Installment]:
        """Enter custom mode with an existing set of rows (e.g. posted back by a client)"""
        params = dict(self._params)
        params["periodicity"] = Periodicity.CUSTOM
        if total is not None:
            params["total"] = round2(total)
        if params["total"] <= 0:
            raise ZeroOrNegativeTotalError(f"Total must be positive, got {params['total']}")

        self._commit(params, copy.deepcopy(rows), SessionState.EDITING)
        return self.installments

    def _custom_rows_for(self, params: Dict[str, Any], changes: Dict[str, Any]) -> List[Installment]:
        total = params["total"]
        if total <= 0:
            raise ZeroOrNegativeTotalError(f"Total must be positive, got {total}")

        entering = not self.is_custom or self.state == SessionState.IDLE
        if entering or "start_date" in changes:
            return custom_schedule.seed_rows(params["start_date"], total)

        rows = copy.deepcopy(self._installments)
        if "total" in changes:
            for row in rows:
                row.amount = custom_schedule.percentage_to_amount(row.percentage, total)
        return rows

    def _commit(self, params: Dict[str, Any], installments: List[Installment], state: SessionState) -> None:
        self._params = params
        self._installments = installments
        self.state = state

    # -- custom editing --------------------------------------------------

    def _require_editing(self, operation: str) -> None:
        if self.state != SessionState.EDITING:
            raise ScheduleStateError(f"{operation} requires a custom schedule being edited (state={self.state.value})")

    def add_row(self) -> List[Installment]:
        self._require_editing("add_row")
        self._installments = custom_schedule.add_row(self._installments, self.total, self.clock)
        return self.installments

    def remove_row(self, index: int) -> List[Installment]:
        self._require_editing("remove_row")
        self._installments = custom_schedule.remove_row(self._installments, index, self.total)
        return self.installments

    def edit_field(self, index: int, field: Union[RowField, str], value: Any) -> List[Installment]:
        self._require_editing("edit_field")
        rows = copy.deepcopy(self._installments)
        self._installments = custom_schedule.edit_field(rows, index, field, value, self.total)
        return self.installments

    # -- persistence -----------------------------------------------------

    async def save(self) -> List[Installment]:
        """
        Validate and hand the schedule to the ledger.

        Raises:
            UnbalancedScheduleError: sums do not match 100% / the total
            ScheduleStateError: nothing has been generated yet
            Any ledger exception, unmodified; the session stays editable
        """
        if self.state in (SessionState.IDLE, SessionState.GENERATING):
            raise ScheduleStateError(f"Nothing to save (state={self.state.value})")

        custom_schedule.validate_schedule(self._installments, self.total)

        editable_state = SessionState.EDITING if self.is_custom else SessionState.PREVIEWING
        try:
            await self.ledger.save_schedule(self.contract_id, self.installments)
        except Exception:
            self.state = editable_state
            record_schedule_saved(success=False)
            logger.warning("Ledger rejected schedule", extra={"contract_id": self.contract_id})
            raise

        self.state = SessionState.SAVED
        record_schedule_saved(success=True)
        log_schedule_saved(self.contract_id, len(self._installments), self.total)
        return self.installments
