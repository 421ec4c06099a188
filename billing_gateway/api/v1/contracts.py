"""Contract schedule endpoints - save and fetch a contract's billing schedule"""

import logging
import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from billing_gateway.api.v1.schemas import CustomScheduleRequest, SavedScheduleResponse, ScheduleResponse
from billing_gateway.api.dependencies import get_clock, get_ledger, get_request_id
from billing_gateway.domain.custom_schedule import summarize
from billing_gateway.domain.exceptions import (
    ContractNotFoundError,
    LedgerError,
    UnbalancedScheduleError,
    ZeroOrNegativeTotalError,
)
from billing_gateway.domain.models import Installment
from billing_gateway.domain.ports import Clock, Ledger
from billing_gateway.domain.session import ScheduleSession
from billing_gateway.infrastructure.database.repositories import ContractRepository, InstallmentRepository
from billing_gateway.infrastructure.database.session import get_db

router = APIRouter()


@router.put("/contracts/{contract_id}/schedule", response_model=SavedScheduleResponse)
async def save_contract_schedule(
    contract_id: int,
    request_body: CustomScheduleRequest,
    request: Request,
    ledger: Ledger = Depends(get_ledger),
    clock: Clock = Depends(get_clock),
):
    """
    Validate a schedule and replace the contract's stored one.

    Flow:
    1. Load the posted rows into a schedule session
    2. Reject unless percentages sum to 100.00 and amounts to the total
    3. Hand the rows to the ledger (no retries; failures surface as 502)
    """
    request_id = get_request_id(request)
    try:
        session = ScheduleSession(contract_id, ledger, clock, total=request_body.total)
        session.load_rows(request_body.rows())
        installments = await session.save()

    except (UnbalancedScheduleError, ZeroOrNegativeTotalError, ValueError) as e:
        logging.warning(f"Schedule rejected: {e}", extra={"request_id": request_id, "contract_id": contract_id})
        raise HTTPException(status_code=422, detail=str(e))

    except ContractNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except (LedgerError, httpx.HTTPError) as e:
        logging.error(f"Ledger error: {e}", extra={"request_id": request_id, "contract_id": contract_id})
        raise HTTPException(status_code=502, detail="Ledger service unavailable")

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return SavedScheduleResponse.build(
        session.total,
        installments,
        session.summary,
        contract_id=contract_id,
        state=session.state.value,
    )


@router.get("/contracts/{contract_id}/schedule", response_model=ScheduleResponse)
def get_contract_schedule(contract_id: int, db: Session = Depends(get_db)):
    """
    Retrieve the saved schedule of a contract.

    Returns:
        Installments in due-date order with their totals
    """
    contract = ContractRepository(db).get(contract_id)
    if not contract:
        raise HTTPException(status_code=404, detail="Contract not found")

    installments = [
        Installment(due_date=record.due_date, percentage=record.percentage, amount=record.amount)
        for record in InstallmentRepository(db).list_for_contract(contract_id)
    ]

    return ScheduleResponse.build(contract.total, installments, summarize(installments, contract.total))
