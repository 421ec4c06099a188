"""SQLAlchemy ORM models for brackets, contracts and billing installments"""

import uuid
from sqlalchemy import Column, String, Integer, Numeric, Date, DateTime, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class BracketRecord(Base):
    """Tariff bracket for a payroll-slip range in one year"""

    __tablename__ = "bracket"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), nullable=False)
    year = Column(Integer, nullable=False, index=True)
    min_units = Column(Integer, nullable=False, default=1)
    max_units = Column(Integer, nullable=True)  # NULL = unbounded
    rate = Column(Numeric(12, 2), nullable=False)
    hours = Column(Numeric(8, 2), nullable=False, default=1)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ContractRecord(Base):
    """Client contract whose total is billed in installments"""

    __tablename__ = "contract"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_code = Column(Text, nullable=False, index=True)
    total = Column(Numeric(12, 2), nullable=False)
    activation_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    installments = relationship(
        "InstallmentRecord",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="InstallmentRecord.due_date",
    )


class InstallmentRecord(Base):
    """Individual installment within a contract's billing schedule"""

    __tablename__ = "billing_installment"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    contract_id = Column(Integer, ForeignKey("contract.id", ondelete="CASCADE"), nullable=False, index=True)
    due_date = Column(Date, nullable=False)
    percentage = Column(Numeric(5, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Text, nullable=False, default="to_issue")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    contract = relationship("ContractRecord", back_populates="installments")
