"""Structured JSON logging for fleet operations"""

import logging
import sys
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger
from moto_fleet.config import settings
from moto_fleet.utils.date_utils import utcnow

# Chatty third-party loggers kept at WARNING unless the service runs at DEBUG
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Adds timestamp, level and service name to every record"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = utcnow().isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Route the root logger to stdout as one JSON object per line"""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.addHandler(handler)

    if level.upper() != "DEBUG":
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def log_vehicle_operation(
    request_id: str,
    operation: str,
    plate: str,
    outcome: str,
    duration_ms: float,
    reason: Optional[str] = None,
) -> None:
    """One line per vehicle endpoint call; rejected calls carry the domain reason code"""
    fields = {
        "request_id": request_id,
        "operation": operation,
        "plate": plate,
        "outcome": outcome,
        "duration_ms": round(duration_ms, 2),
    }
    if reason is not None:
        fields["reason"] = reason

    level = logging.INFO if outcome == "ok" else logging.WARNING
    logging.log(level, "Vehicle operation completed", extra=fields)
