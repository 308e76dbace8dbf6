"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from money_dashboard.config import settings


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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_outlook(request_id: str, user_id: str, risk_level: str, over_under: float, cached: bool) -> None:
    """Log outlook outcome for analysis"""
    logging.info(
        "Outlook served",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "outlook",
            "risk_level": risk_level,
            "over_under": round(over_under, 2),
            "cached": cached,
        },
    )


def log_analysis(
    user_id: str,
    transaction_count: int,
    summary: Dict[str, int],
    duration_ms: float,
    trigger: str,
) -> None:
    """Log AI analysis outcome"""
    logging.info(
        "Analysis completed",
        extra={
            "user_id": user_id,
            "step": "analysis_complete",
            "trigger": trigger,
            "transaction_count": transaction_count,
            "duration_ms": duration_ms,
            **summary,
        },
    )
