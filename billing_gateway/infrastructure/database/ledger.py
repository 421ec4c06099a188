"""Ledger backed by the service's own database"""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from billing_gateway.domain.exceptions import ContractNotFoundError
from billing_gateway.domain.models import Bracket, Installment
from billing_gateway.domain.ports import Clock
from billing_gateway.infrastructure.database.repositories import (
    BracketRepository,
    ContractRepository,
    InstallmentRepository,
)
from billing_gateway.utils.date_utils import SystemClock


class DatabaseLedger:
    """Ledger over the bracket, contract and installment tables"""

    def __init__(self, db: Session, clock: Clock | None = None):
        self.db = db
        self.clock = clock or SystemClock()
        self.brackets = BracketRepository(db)
        self.contracts = ContractRepository(db)
        self.installments = InstallmentRepository(db)

    async def list_brackets(self, year: Optional[int] = None) -> List[Bracket]:
        return self.brackets.list_brackets(year)

    async def current_year_for(self, contract_id: int) -> int:
        """Catalog year of a contract: its activation year, else the current year"""
        contract = self.contracts.get(contract_id)
        if contract is None:
            raise ContractNotFoundError(f"Contract {contract_id} not found")
        if contract.activation_date is None:
            return self.clock.today().year
        return contract.activation_date.year

    async def save_schedule(self, contract_id: int, installments: List[Installment]) -> None:
        """Replace the contract's schedule atomically; nothing is written on failure"""
        if self.contracts.get(contract_id) is None:
            raise ContractNotFoundError(f"Contract {contract_id} not found")

        try:
            self.installments.replace_schedule(contract_id, installments)
            self.db.commit()
        except Exception:
            self.db.rollback()
            logging.error("Schedule write failed, rolled back", extra={"contract_id": contract_id})
            raise
