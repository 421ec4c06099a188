"""GET /v1/brackets - Tariff bracket catalog and slip-count matching"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from billing_gateway.api.v1.schemas import BracketListResponse, BracketMatchResponse, BracketSchema
from billing_gateway.api.dependencies import get_clock, get_ledger, get_request_id
from billing_gateway.domain.brackets import BracketSelector, bracket_amount, total_units
from billing_gateway.domain.catalog import load_catalog
from billing_gateway.domain.exceptions import ContractNotFoundError, LedgerError, NoBracketMatchError
from billing_gateway.domain.ports import Clock, Ledger

router = APIRouter()


@router.get("/brackets", response_model=BracketListResponse)
async def list_brackets(
    request: Request,
    year: Optional[int] = Query(None, description="Only brackets of this year"),
    ledger: Ledger = Depends(get_ledger),
):
    try:
        brackets = await ledger.list_brackets(year)
    except (LedgerError, httpx.HTTPError) as e:
        logging.error(f"Ledger error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=502, detail="Ledger service unavailable")

    return BracketListResponse(
        year=year,
        brackets=[BracketSchema.from_domain(bracket, bracket_amount(bracket)) for bracket in brackets],
    )


@router.get("/brackets/match", response_model=BracketMatchResponse)
async def match_bracket(
    request: Request,
    units: int = Query(..., description="Regular payroll slips"),
    extra_units: int = Query(0, description="Extra payroll slips"),
    year: Optional[int] = Query(None, description="Anchor year (defaults to the contract's or the current one)"),
    contract_id: Optional[int] = Query(None),
    name: Optional[str] = Query(None, description="Pin this bracket instead of auto-selecting"),
    ledger: Ledger = Depends(get_ledger),
    clock: Clock = Depends(get_clock),
):
    """
    Resolve the bracket for a slip count.

    Flow:
    1. Resolve the anchor year catalog (falls back to the current year)
    2. Auto-select by slip count, or pin `name` when given
    3. A miss is reported as matched=false, not as an error
    """
    request_id = get_request_id(request)

    try:
        slips = total_units(units, extra_units)
        catalog = await load_catalog(ledger, clock, contract_id=contract_id, year=year)
        selector = BracketSelector(catalog)
        selector.set_units(slips)
        if name is not None:
            selector.select(name)

    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    except (ContractNotFoundError, NoBracketMatchError) as e:
        raise HTTPException(status_code=404, detail=str(e))

    except (LedgerError, httpx.HTTPError) as e:
        logging.error(f"Ledger error: {e}", extra={"request_id": request_id, "contract_id": contract_id})
        raise HTTPException(status_code=502, detail="Ledger service unavailable")

    return BracketMatchResponse.build(
        selector.match,
        units=slips,
        year=catalog.year,
        fallback=catalog.fallback,
        auto_select=selector.auto_select,
    )
