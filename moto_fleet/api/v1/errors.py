"""Translate domain exceptions into HTTP errors"""

import logging
from fastapi import HTTPException

from moto_fleet.domain.exceptions import (
    ConflictError,
    DomainException,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from moto_fleet.infrastructure.observability.metrics import slot_conflict_counter

STATUS_BY_EXCEPTION = [
    (NotFoundError, 404, "not_found"),
    (ConflictError, 409, "conflict"),
    (ValidationError, 422, "invalid"),
    (PersistenceError, 500, "error"),
]


def outcome_for(exc: Exception) -> str:
    """Metric label for a failed operation"""
    for exc_type, _, outcome in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            return outcome
    return "error"


def to_http_exception(exc: DomainException, request_id: str) -> HTTPException:
    status_code = 500
    for exc_type, code, _ in STATUS_BY_EXCEPTION:
        if isinstance(exc, exc_type):
            status_code = code
            break

    if isinstance(exc, ConflictError) and exc.reason == ConflictError.NO_SLOT_AVAILABLE:
        slot_conflict_counter.inc()

    if status_code >= 500:
        logging.error(f"Storage error: {exc}", extra={"request_id": request_id})
        return HTTPException(status_code=500, detail={"message": "Internal server error", "reason": exc.reason})

    logging.warning(f"Request rejected: {exc}", extra={"request_id": request_id, "reason": exc.reason})
    return HTTPException(status_code=status_code, detail={"message": str(exc), "reason": exc.reason})
