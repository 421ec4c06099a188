"""Bracket catalog resolution - which year's brackets apply to a record"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from billing_gateway.domain.models import Bracket
from billing_gateway.domain.ports import Clock, Ledger

logger = logging.getLogger(__name__)


@dataclass
class BracketCatalog:
    """Brackets in effect for one anchor year"""

    year: int
    brackets: List[Bracket] = field(default_factory=list)
    fallback: bool = False  # True when the anchor year had no brackets of its own


def brackets_for_year(brackets: Iterable[Bracket], year: int) -> List[Bracket]:
    return [bracket for bracket in brackets if bracket.year == year]


async def load_catalog(
    ledger: Ledger,
    clock: Clock,
    contract_id: Optional[int] = None,
    year: Optional[int] = None,
) -> BracketCatalog:
    """
    Resolve the catalog for a record.

    Anchor year: explicit `year`, else the contract's activation year, else
    the current calendar year. When the anchor year has no brackets, falls
    back to the whole catalog scoped to the current year.
    """
    current_year = clock.today().year
    if year is None:
        year = await ledger.current_year_for(contract_id) if contract_id is not None else current_year

    brackets = await ledger.list_brackets(year)
    if brackets:
        return BracketCatalog(year=year, brackets=list(brackets))

    logger.info(
        "No brackets for anchor year, using current-year catalog",
        extra={"anchor_year": year, "current_year": current_year, "contract_id": contract_id},
    )
    all_brackets = await ledger.list_brackets()
    return BracketCatalog(
        year=current_year,
        brackets=brackets_for_year(all_brackets, current_year),
        fallback=True,
    )
