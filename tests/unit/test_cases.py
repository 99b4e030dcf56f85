"""Unit tests for fraud case lifecycle rules"""

import pytest
from fraudshield.domain.cases import (
    TERMINAL_CASE_STATUSES,
    can_transition,
    next_case_status,
    status_after_dispute,
    status_after_report,
)
from fraudshield.domain.exceptions import InvalidCaseTransitionError, InvalidStatusChangeError
from fraudshield.domain.models import CaseStatus, TransactionStatus


def test_reviewer_transitions():
    """Test every allowed reviewer move"""
    assert next_case_status(CaseStatus.OPEN, CaseStatus.INVESTIGATING) == CaseStatus.INVESTIGATING
    assert next_case_status(CaseStatus.INVESTIGATING, CaseStatus.RESOLVED) == CaseStatus.RESOLVED
    assert next_case_status(CaseStatus.INVESTIGATING, CaseStatus.DISPUTED) == CaseStatus.DISPUTED
    assert next_case_status(CaseStatus.DISPUTED, CaseStatus.INVESTIGATING) == CaseStatus.INVESTIGATING
    assert next_case_status("open", "closed") == CaseStatus.CLOSED


def test_disallowed_transitions():
    """Test skipping investigation and leaving terminal states"""
    with pytest.raises(InvalidCaseTransitionError):
        next_case_status(CaseStatus.OPEN, CaseStatus.RESOLVED)
    with pytest.raises(InvalidCaseTransitionError):
        next_case_status(CaseStatus.OPEN, CaseStatus.DISPUTED)
    with pytest.raises(InvalidCaseTransitionError):
        next_case_status(CaseStatus.RESOLVED, CaseStatus.INVESTIGATING)
    with pytest.raises(InvalidCaseTransitionError):
        next_case_status(CaseStatus.CLOSED, CaseStatus.OPEN)


def test_terminal_statuses():
    assert TERMINAL_CASE_STATUSES == {CaseStatus.RESOLVED, CaseStatus.CLOSED}
    for target in CaseStatus:
        assert not can_transition(CaseStatus.RESOLVED, target)
        assert not can_transition(CaseStatus.CLOSED, target)


def test_nothing_transitions_to_open():
    for current in CaseStatus:
        assert not can_transition(current, CaseStatus.OPEN)


def test_report_flags_transaction():
    assert status_after_report(TransactionStatus.APPROVED) == TransactionStatus.FLAGGED
    assert status_after_report(TransactionStatus.FLAGGED) == TransactionStatus.FLAGGED
    assert status_after_report(TransactionStatus.DISPUTED) == TransactionStatus.FLAGGED


def test_dispute_status_changes():
    assert status_after_dispute(TransactionStatus.APPROVED) == TransactionStatus.DISPUTED
    assert status_after_dispute(TransactionStatus.FLAGGED) == TransactionStatus.DISPUTED
    with pytest.raises(InvalidStatusChangeError):
        status_after_dispute(TransactionStatus.DISPUTED)


def test_unsettled_transactions_cannot_be_reported_or_disputed():
    for status in (TransactionStatus.FAILED, TransactionStatus.CANCELLED):
        with pytest.raises(InvalidStatusChangeError):
            status_after_report(status)
        with pytest.raises(InvalidStatusChangeError):
            status_after_dispute(status)
