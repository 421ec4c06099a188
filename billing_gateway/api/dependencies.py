"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from billing_gateway.config import settings
from billing_gateway.domain.ports import Clock, Ledger
from billing_gateway.infrastructure.clients.ledger import LedgerClient
from billing_gateway.infrastructure.database.ledger import DatabaseLedger
from billing_gateway.infrastructure.database.session import get_db
from billing_gateway.utils.date_utils import SystemClock


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Clock:
    """Provide the clock used for 'today' (overridden in tests)"""
    return SystemClock()


def get_ledger(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> Ledger:
    """Provide the configured ledger backend"""
    if settings.ledger_backend == "http":
        return LedgerClient(clock=clock)
    return DatabaseLedger(db, clock=clock)
