"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from sacco_risk.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


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


def log_payment_recorded(
    loan_id: str,
    repayment_id: str,
    amount: float,
    outstanding_balance: float,
    status: str,
    request_id: Optional[str] = None,
) -> None:
    """Log a repayment applied to a loan"""
    logging.getLogger("sacco_risk.ledger").info(
        "Repayment recorded",
        extra={
            "request_id": request_id,
            "loan_id": loan_id,
            "repayment_id": repayment_id,
            "step": "repayment_recorded",
            "amount": amount,
            "outstanding_balance": outstanding_balance,
            "loan_status": status,
        },
    )


def log_risk_scored(
    client_id: str,
    loan_id: Optional[str],
    score: float,
    risk_category: str,
    duration_ms: float,
    request_id: Optional[str] = None,
) -> None:
    """Log structured scoring outcome for analysis"""
    logging.getLogger("sacco_risk.scoring").info(
        "Risk score calculated",
        extra={
            "request_id": request_id,
            "client_id": client_id,
            "loan_id": loan_id,
            "step": "risk_scored",
            "score": score,
            "risk_category": risk_category,
            "duration_ms": duration_ms,
        },
    )
