"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Transaction attempt is missing a field or carries an invalid value"""

    pass


class SettlementRejected(DomainException):
    """Ledger refused to settle the attempt on business-rule grounds"""

    reason = "rejected"


class InsufficientFundsError(SettlementRejected):
    """Sender balance is lower than the attempted amount"""

    reason = "insufficient_funds"


class InvalidRecipientError(SettlementRejected):
    """Recipient email does not resolve to an account"""

    reason = "invalid_recipient"


class SelfTransferError(SettlementRejected):
    """Sender and recipient resolve to the same account"""

    reason = "self_transfer"


class ConcurrencyConflictError(DomainException):
    """Concurrent settlement touched the same account; safe to retry"""

    pass


class IdentityResolutionError(DomainException):
    """Identity resolver is unavailable"""

    pass


class PersistenceError(DomainException):
    """Store rejected a write for a reason other than a conflict"""

    pass


class AccountNotFoundError(DomainException):
    pass


class TransactionNotFoundError(DomainException):
    pass


class CaseNotFoundError(DomainException):
    pass


class InvalidCaseTransitionError(DomainException):
    """Requested case status is not reachable from the current one"""

    pass


class InvalidStatusChangeError(DomainException):
    """Transaction status cannot be changed by the requested action"""

    pass
