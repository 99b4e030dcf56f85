"""Case manager - report, dispute and reviewer transitions for fraud cases"""

import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fraudshield.domain.cases import next_case_status, status_after_dispute, status_after_report
from fraudshield.domain.exceptions import CaseNotFoundError, PersistenceError, TransactionNotFoundError
from fraudshield.domain.models import CaseStatus, DisputeNotice, TransactionStatus
from fraudshield.infrastructure.database.models import FraudCase, Transaction
from fraudshield.infrastructure.database.repositories import CaseRepository, TransactionRepository
from fraudshield.infrastructure.observability.logging import log_case_transition
from fraudshield.infrastructure.observability.metrics import case_transition_counter


class CaseManager:
    """Every status change here is triggered by an explicit user or reviewer action"""

    def __init__(self, db: Session):
        self.db = db
        self.cases = CaseRepository(db)
        self.transactions = TransactionRepository(db)

    def report(self, transaction_id: uuid.UUID, notes: Optional[str] = None, actor: str = "user") -> FraudCase:
        """Open a case in `open` and flag the linked transaction"""
        transaction = self._get_transaction(transaction_id)
        transaction.status = status_after_report(TransactionStatus(transaction.status)).value

        fraud_case = self.cases.create_case(transaction.id, notes, CaseStatus.OPEN.value)
        self.cases.add_transition(fraud_case, None, CaseStatus.OPEN.value, actor, notes)
        self._commit()

        case_transition_counter.labels(to_status=CaseStatus.OPEN.value).inc()
        log_case_transition(str(fraud_case.id), str(transaction.id), None, CaseStatus.OPEN.value, actor)
        return fraud_case

    def dispute(self, transaction_id: uuid.UUID, reason: Optional[str] = None) -> DisputeNotice:
        """
        Mark the transaction disputed and return the notice for the relay.

        Existing cases are left alone; a reviewer opens or moves one separately.
        """
        transaction = self._get_transaction(transaction_id)
        transaction.status = status_after_dispute(TransactionStatus(transaction.status)).value
        transaction.dispute_reason = reason or None
        self._commit()

        return DisputeNotice(
            transaction_id=transaction.id,
            user_id=transaction.user_id,
            user_email=transaction.sender.email if transaction.sender else None,
            amount=transaction.amount,
            merchant=transaction.merchant,
            dispute_reason=transaction.dispute_reason,
        )

    def transition(
        self,
        case_id: uuid.UUID,
        target: CaseStatus,
        actor: str = "reviewer",
        notes: Optional[str] = None,
        resolution: Optional[str] = None,
    ) -> FraudCase:
        """
        Apply a reviewer action.

        Raises:
            CaseNotFoundError: Unknown case
            InvalidCaseTransitionError: Target not reachable from the current status
        """
        fraud_case = self.get_case(case_id)
        current = CaseStatus(fraud_case.status)
        target = next_case_status(current, target)

        fraud_case.status = target.value
        if notes:
            fraud_case.notes = notes
        if resolution:
            fraud_case.resolution = resolution
        self.cases.add_transition(fraud_case, current.value, target.value, actor, notes)
        self._commit()

        case_transition_counter.labels(to_status=target.value).inc()
        log_case_transition(str(fraud_case.id), str(fraud_case.transaction_id), current.value, target.value, actor)
        return fraud_case

    def get_case(self, case_id: uuid.UUID) -> FraudCase:
        fraud_case = self.cases.get_case(case_id)
        if fraud_case is None:
            raise CaseNotFoundError(f"Case {case_id} not found")
        return fraud_case

    def list_cases(self, limit: int = 50) -> List[FraudCase]:
        return self.cases.get_cases(limit=limit)

    def _get_transaction(self, transaction_id: uuid.UUID) -> Transaction:
        transaction = self.transactions.get_transaction(transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(f"Transaction {transaction_id} not found")
        return transaction

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e
