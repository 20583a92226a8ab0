"""Structured JSON logging for client observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from teller_client.config import settings


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


def log_transaction(
    kind: str,
    outcome: str,
    amount: str,
    fee: Optional[str],
    duration_ms: float,
    error_kind: Optional[str] = None,
    warning: Optional[str] = None,
) -> None:
    """Log structured transaction outcome for analysis"""
    logging.getLogger("teller_client.transactions").info(
        "Transaction flow finished",
        extra={
            "step": "transaction_complete",
            "transaction_kind": kind,
            "outcome": outcome,
            "amount": amount,
            "fee": fee,
            "error_kind": error_kind,
            "stale_balances": warning is not None,
            "duration_ms": duration_ms,
        },
    )
