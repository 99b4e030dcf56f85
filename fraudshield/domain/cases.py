"""Fraud case lifecycle - status transitions and transaction status effects"""

from typing import Dict, FrozenSet

from fraudshield.domain.exceptions import InvalidCaseTransitionError, InvalidStatusChangeError
from fraudshield.domain.models import CaseStatus, TransactionStatus

# Reviewer-driven transitions. Nothing advances a case without an explicit action.
CASE_TRANSITIONS: Dict[CaseStatus, FrozenSet[CaseStatus]] = {
    CaseStatus.OPEN: frozenset({CaseStatus.INVESTIGATING, CaseStatus.CLOSED}),
    CaseStatus.INVESTIGATING: frozenset({CaseStatus.RESOLVED, CaseStatus.DISPUTED, CaseStatus.CLOSED}),
    CaseStatus.DISPUTED: frozenset({CaseStatus.INVESTIGATING, CaseStatus.CLOSED}),
    CaseStatus.RESOLVED: frozenset(),
    CaseStatus.CLOSED: frozenset(),
}

TERMINAL_CASE_STATUSES = frozenset(
    status for status, targets in CASE_TRANSITIONS.items() if not targets
)

# Transactions that never settled cannot be reported or disputed
_UNSETTLED = frozenset({TransactionStatus.CANCELLED, TransactionStatus.FAILED})


def can_transition(current: CaseStatus, target: CaseStatus) -> bool:
    return target in CASE_TRANSITIONS[current]


def next_case_status(current: CaseStatus, target: CaseStatus) -> CaseStatus:
    """
    Validate a reviewer transition.

    Raises:
        InvalidCaseTransitionError: If target is not reachable from current
    """
    current, target = CaseStatus(current), CaseStatus(target)
    if not can_transition(current, target):
        raise InvalidCaseTransitionError(f"Cannot move case from {current.value} to {target.value}")
    return target


def status_after_report(current: TransactionStatus) -> TransactionStatus:
    """A report flags any settled transaction, including a disputed one"""
    current = TransactionStatus(current)
    if current in _UNSETTLED:
        raise InvalidStatusChangeError(f"Cannot report a {current.value} transaction")
    return TransactionStatus.FLAGGED


def status_after_dispute(current: TransactionStatus) -> TransactionStatus:
    current = TransactionStatus(current)
    if current in _UNSETTLED:
        raise InvalidStatusChangeError(f"Cannot dispute a {current.value} transaction")
    if current == TransactionStatus.DISPUTED:
        raise InvalidStatusChangeError("Transaction is already disputed")
    return TransactionStatus.DISPUTED
