"""POST /v1/schedules/* - Schedule preview and custom row editing (stateless)"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from billing_gateway.api.v1.schemas import (
    CustomScheduleRequest,
    EditRowRequest,
    PreviewRequest,
    RemoveRowRequest,
    ScheduleResponse,
)
from billing_gateway.api.dependencies import get_clock, get_request_id
from billing_gateway.domain import custom_schedule
from billing_gateway.domain.exceptions import (
    InvalidDateError,
    InvalidInstallmentCountError,
    InvalidPeriodicityError,
    ScheduleRowNotFoundError,
    ZeroOrNegativeTotalError,
)
from billing_gateway.domain.installments import generate_schedule
from billing_gateway.domain.models import Periodicity
from billing_gateway.domain.ports import Clock
from billing_gateway.infrastructure.observability.metrics import record_schedule_generated
from billing_gateway.utils.date_utils import parse_date
from billing_gateway.utils.money import round2

router = APIRouter()

# Bad input from the form: reported back, never a server error
SCHEDULE_INPUT_ERRORS = (
    InvalidDateError,
    InvalidInstallmentCountError,
    InvalidPeriodicityError,
    ScheduleRowNotFoundError,
    ZeroOrNegativeTotalError,
    ValueError,
)


@router.post("/schedules/preview", response_model=ScheduleResponse)
def preview_schedule(request_body: PreviewRequest, request: Request):
    """
    Generate a reconciled schedule without saving it.

    Periodic schedules always balance exactly. CUSTOM returns the two-row
    50/50 seed that the client then edits through /schedules/rows/*.
    """
    try:
        if request_body.periodicity == Periodicity.CUSTOM:
            installments = custom_schedule.seed_rows(parse_date(request_body.start_date), request_body.total)
        else:
            installments = generate_schedule(
                request_body.total,
                request_body.start_date,
                request_body.periodicity,
                request_body.count,
                request_body.equal_split,
            )
            record_schedule_generated(request_body.periodicity.value, request_body.equal_split)
    except SCHEDULE_INPUT_ERRORS as e:
        logging.warning(f"Schedule preview rejected: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=422, detail=str(e))

    total = round2(request_body.total)
    return ScheduleResponse.build(total, installments, custom_schedule.summarize(installments, total))


@router.post("/schedules/rows/add", response_model=ScheduleResponse)
def add_schedule_row(request_body: CustomScheduleRequest, clock: Clock = Depends(get_clock)):
    """Append a row holding the unallocated remainder (100% when the schedule is empty)"""
    try:
        rows = custom_schedule.add_row(request_body.rows(), request_body.total, clock)
    except SCHEDULE_INPUT_ERRORS as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ScheduleResponse.build(request_body.total, rows, custom_schedule.summarize(rows, request_body.total))


@router.post("/schedules/rows/remove", response_model=ScheduleResponse)
def remove_schedule_row(request_body: RemoveRowRequest):
    try:
        rows = custom_schedule.remove_row(request_body.rows(), request_body.index, request_body.total)
    except SCHEDULE_INPUT_ERRORS as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ScheduleResponse.build(request_body.total, rows, custom_schedule.summarize(rows, request_body.total))


@router.post("/schedules/rows/edit", response_model=ScheduleResponse)
def edit_schedule_row(request_body: EditRowRequest):
    """Edit one field; percentage and amount of that row stay in step, other rows are untouched"""
    try:
        rows = custom_schedule.edit_field(
            request_body.rows(),
            request_body.index,
            request_body.field,
            request_body.value,
            request_body.total,
        )
    except SCHEDULE_INPUT_ERRORS as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ScheduleResponse.build(request_body.total, rows, custom_schedule.summarize(rows, request_body.total))
