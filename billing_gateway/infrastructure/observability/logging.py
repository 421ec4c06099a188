"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "billing-gateway"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_schedule_generated(contract_id: int, periodicity: str, count: int, total: Decimal) -> None:
    logging.getLogger("billing_gateway.schedule").info(
        "Schedule generated",
        extra={
            "contract_id": contract_id,
            "step": "schedule_generated",
            "periodicity": periodicity,
            "installment_count": count,
            "total": str(total),
        },
    )


def log_schedule_saved(contract_id: int, count: int, total: Decimal) -> None:
    """Log structured save outcome for auditing"""
    logging.getLogger("billing_gateway.schedule").info(
        "Schedule saved",
        extra={
            "contract_id": contract_id,
            "step": "schedule_saved",
            "installment_count": count,
            "total": str(total),
        },
    )


def log_bracket_miss(units: int, year: int, reason: str) -> None:
    """A missing bracket is recoverable: warn and keep the previous selection"""
    logging.getLogger("billing_gateway.brackets").warning(
        "No bracket match, keeping previous selection",
        extra={
            "step": "bracket_match",
            "units": units,
            "year": year,
            "reason": reason,
        },
    )
