"""Data access layer for billing entities"""

from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from billing_gateway.infrastructure.database.models import BracketRecord, ContractRecord, InstallmentRecord
from billing_gateway.domain.models import Bracket, Installment


class BracketRepository:
    """Repository for tariff brackets"""

    def __init__(self, db: Session):
        self.db = db

    def list_brackets(self, year: Optional[int] = None) -> List[Bracket]:
        """Brackets for one year (or all years, newest first), ordered by name"""
        query = self.db.query(BracketRecord)
        if year is not None:
            query = query.filter(BracketRecord.year == year)
        records = query.order_by(BracketRecord.year.desc(), BracketRecord.name.asc()).all()
        return [self._to_domain(record) for record in records]

    def add(self, bracket: Bracket) -> BracketRecord:
        record = BracketRecord(
            name=bracket.name,
            year=bracket.year,
            min_units=bracket.min_units,
            max_units=bracket.max_units,
            rate=bracket.rate,
            hours=bracket.hours,
            description=bracket.description,
        )
        self.db.add(record)
        self.db.flush()
        return record

    @staticmethod
    def _to_domain(record: BracketRecord) -> Bracket:
        return Bracket(
            name=record.name,
            year=record.year,
            rate=Decimal(record.rate),
            min_units=record.min_units or 1,
            max_units=record.max_units,
            hours=Decimal(record.hours or 1),
            description=record.description or "",
        )


class ContractRepository:
    """Repository for client contracts"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, contract_id: int) -> Optional[ContractRecord]:
        return self.db.query(ContractRecord).filter(ContractRecord.id == contract_id).first()


class InstallmentRepository:
    """Repository for saved billing schedules"""

    def __init__(self, db: Session):
        self.db = db

    def replace_schedule(self, contract_id: int, installments: List[Installment]) -> List[InstallmentRecord]:
        """Swap the contract's schedule for a new one (caller commits)"""
        self.db.query(InstallmentRecord).filter(InstallmentRecord.contract_id == contract_id).delete(
            synchronize_session=False
        )

        records = [
            InstallmentRecord(
                contract_id=contract_id,
                due_date=inst.due_date,
                percentage=inst.percentage,
                amount=inst.amount,
            )
            for inst in installments
        ]
        self.db.add_all(records)
        self.db.flush()
        return records

    def list_for_contract(self, contract_id: int) -> List[InstallmentRecord]:
        return (
            self.db.query(InstallmentRecord)
            .filter(InstallmentRecord.contract_id == contract_id)
            .order_by(InstallmentRecord.due_date.asc())
            .all()
        )
