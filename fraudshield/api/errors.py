"""Map domain exceptions onto HTTP errors"""

from fastapi import HTTPException

from fraudshield.domain.exceptions import (
    AccountNotFoundError,
    CaseNotFoundError,
    ConcurrencyConflictError,
    DomainException,
    IdentityResolutionError,
    InvalidCaseTransitionError,
    InvalidStatusChangeError,
    PersistenceError,
    SettlementRejected,
    TransactionNotFoundError,
    ValidationError,
)

NOT_FOUND = (AccountNotFoundError, TransactionNotFoundError, CaseNotFoundError)
CONFLICTS = (InvalidCaseTransitionError, InvalidStatusChangeError)


def to_http_exception(exc: DomainException) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, SettlementRejected):
        return HTTPException(status_code=422, detail={"reason": exc.reason, "message": str(exc)})
    if isinstance(exc, NOT_FOUND):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, CONFLICTS):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, ConcurrencyConflictError):
        return HTTPException(
            status_code=409,
            detail="Concurrent update on account, retry the request",
            headers={"Retry-After": "2"},
        )
    if isinstance(exc, (IdentityResolutionError, PersistenceError)):
        return HTTPException(status_code=503, detail="Service temporarily unavailable")
    return HTTPException(status_code=500, detail="Internal server error")
