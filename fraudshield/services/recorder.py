"""Transaction recorder - scores, settles and persists an attempt as one unit"""

import logging
import uuid
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fraudshield.domain.exceptions import PersistenceError, SettlementRejected
from fraudshield.domain.models import (
    RecordedTransaction,
    TransactionAttempt,
    TransactionStatus,
    TransferKind,
)
from fraudshield.domain.scoring import Scorer, assessment_from_score, score_transaction
from fraudshield.domain.validation import validate_attempt
from fraudshield.infrastructure.database.models import Transaction
from fraudshield.infrastructure.database.repositories import TransactionRepository
from fraudshield.infrastructure.observability.metrics import record_rejection, record_transaction
from fraudshield.services.ledger import LedgerService

logger = logging.getLogger(__name__)


class TransactionRecorder:
    """
    Entry point for submissions.

    The transaction row is written inside the same database transaction as
    the ledger mutation, so a settled balance never exists without its
    record and a record never exists without its settlement. The fraud
    flag is advisory: flagged attempts still settle.
    """

    def __init__(self, db: Session, ledger: Optional[LedgerService] = None, scorer: Scorer = score_transaction):
        self.db = db
        self.ledger = ledger or LedgerService(db)
        self.scorer = scorer
        self.transactions = TransactionRepository(db)

    def record(
        self,
        attempt: TransactionAttempt,
        sender_id: uuid.UUID,
        idempotency_key: Optional[str] = None,
    ) -> RecordedTransaction:
        """
        Score, settle and persist an attempt.

        Flow:
        1. Validate the attempt
        2. Score it (pure, outside the database transaction)
        3. Settle through the ledger and insert the transaction row, commit once
        4. On a ledger rejection, keep a failed-attempt audit entry and re-raise

        Raises:
            ValidationError: Attempt is malformed
            SettlementRejected: Ledger refused the attempt
            ConcurrencyConflictError: Retries exhausted
        """
        attempt = validate_attempt(attempt)
        assessment = self.scorer(attempt)

        def unit() -> Tuple[Transaction, bool]:
            settlement = self.ledger.settle(attempt, sender_id, idempotency_key)
            if settlement.replayed:
                existing = self.transactions.get_transaction(settlement.reference)
                if existing is None:
                    raise PersistenceError(f"Ledger entries without transaction {settlement.reference}")
                return existing, True
            created = self.transactions.create_transaction(attempt, settlement, assessment, idempotency_key)
            return created, False

        try:
            db_transaction, replayed = self.ledger.run_atomic(unit)
        except SettlementRejected as e:
            record_rejection(attempt.transfer_kind.value, e.reason)
            self._record_failure(sender_id, attempt, e.reason, assessment.score, idempotency_key)
            raise

        if replayed:
            logger.info(
                "Idempotent replay",
                extra={"transaction_id": str(db_transaction.id), "idempotency_key": idempotency_key},
            )
            return to_recorded(db_transaction, replayed=True)

        record_transaction(attempt.transfer_kind.value, assessment.score, assessment.flagged)
        return to_recorded(db_transaction)

    def _record_failure(
        self,
        sender_id: uuid.UUID,
        attempt: TransactionAttempt,
        reason: str,
        risk_score: float,
        idempotency_key: Optional[str],
    ) -> None:
        """Audit entry for a rejected attempt, written after the settlement rolled back"""
        try:
            self.transactions.record_failure(sender_id, attempt, reason, risk_score, idempotency_key)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to write failed-attempt audit entry", extra={"reason": reason})


def to_recorded(db_transaction: Transaction, replayed: bool = False) -> RecordedTransaction:
    return RecordedTransaction(
        transaction_id=db_transaction.id,
        status=TransactionStatus(db_transaction.status),
        assessment=assessment_from_score(db_transaction.risk_score),
        sender_id=db_transaction.user_id,
        recipient_id=db_transaction.recipient_id,
        amount=db_transaction.amount,
        transfer_kind=TransferKind(db_transaction.transfer_type),
        created_at=db_transaction.created_at,
        replayed=replayed,
    )
