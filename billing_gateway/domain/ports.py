"""Collaborator interfaces the domain depends on"""

from datetime import date
from typing import List, Optional, Protocol

from billing_gateway.domain.models import Bracket, Installment


class Clock(Protocol):
    def today(self) -> date: ...


class Ledger(Protocol):
    """Record store owning brackets, contracts and saved schedules"""

    async def list_brackets(self, year: Optional[int] = None) -> List[Bracket]: ...

    async def save_schedule(self, contract_id: int, installments: List[Installment]) -> None: ...

    async def current_year_for(self, contract_id: int) -> int: ...
