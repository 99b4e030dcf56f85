"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from fraudshield.config import settings


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
    request_id: str,
    sender_id: str,
    transaction_id: str,
    status: str,
    risk_score: float,
    flagged: bool,
    duration_ms: float,
    replayed: bool = False,
) -> None:
    """Log structured submission outcome for analysis"""
    logging.info(
        "Transaction recorded",
        extra={
            "request_id": request_id,
            "sender_id": sender_id,
            "transaction_id": transaction_id,
            "step": "transaction_complete",
            "status": status,
            "risk_score": risk_score,
            "flagged": flagged,
            "replayed": replayed,
            "duration_ms": duration_ms,
        },
    )


def log_case_transition(
    case_id: str,
    transaction_id: str,
    from_status: Optional[str],
    to_status: str,
    actor: str,
) -> None:
    logging.info(
        "Case transition",
        extra={
            "case_id": case_id,
            "transaction_id": transaction_id,
            "step": "case_transition",
            "from_status": from_status,
            "to_status": to_status,
            "actor": actor,
        },
    )
