"""Dependency injection and shared error handling for FastAPI endpoints"""

import logging
from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from cardwise.domain.exceptions import CardNotFoundError, DomainException
from cardwise.infrastructure.observability.metrics import domain_errors_counter


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def reject_domain_error(error: DomainException, request_id: str, db: Session) -> HTTPException:
    """Roll back and translate a core contract violation into an HTTP error"""
    db.rollback()
    domain_errors_counter.labels(error=type(error).__name__).inc()
    logging.warning(f"Rejected by core: {error}", extra={"request_id": request_id})

    status_code = 404 if isinstance(error, CardNotFoundError) else 422
    return HTTPException(status_code=status_code, detail=str(error))
