"""Dependency injection for FastAPI endpoints"""

from typing import Dict

from fastapi import HTTPException, Request

from teller_client.domain.exceptions import (
    BankAPIError,
    BankingError,
    InvalidStateError,
    NotAuthenticatedError,
    ValidationError,
)
from teller_client.domain.models import ErrorKind
from teller_client.services.container import Services
from teller_client.services.executor import TransactionExecutor

STATUS_BY_KIND = {
    ErrorKind.AUTH_EXPIRED: 401,
    ErrorKind.VALIDATION: 422,
    ErrorKind.INSUFFICIENT_FUNDS: 422,
    ErrorKind.NETWORK: 503,
    ErrorKind.SERVER_REJECTED: 503,
    ErrorKind.UNKNOWN: 502,
}


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_services(request: Request) -> Services:
    """Provide the process-wide client components"""
    return request.app.state.services


def get_flows(request: Request) -> Dict[str, TransactionExecutor]:
    """Provide the in-progress transaction flows keyed by flow id"""
    return request.app.state.flows


def to_http_exception(error: BankingError) -> HTTPException:
    """Map a client error onto an HTTP status with a uniform body"""
    if isinstance(error, (BankAPIError, ValidationError)):
        classified = error.error
        return HTTPException(
            status_code=STATUS_BY_KIND[classified.kind],
            detail={"error_kind": classified.kind.value, "message": classified.message},
        )
    if isinstance(error, NotAuthenticatedError):
        return HTTPException(status_code=401, detail={"error_kind": ErrorKind.AUTH_EXPIRED.value, "message": str(error)})
    if isinstance(error, InvalidStateError):
        return HTTPException(status_code=409, detail={"error_kind": "InvalidState", "message": str(error)})
    return HTTPException(status_code=500, detail={"error_kind": ErrorKind.UNKNOWN.value, "message": str(error)})
