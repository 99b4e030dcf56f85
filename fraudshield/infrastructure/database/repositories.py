"""Data access layer for accounts, transactions, ledger entries and cases"""

import uuid
from decimal import Decimal
from typing import Iterable, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from fraudshield.infrastructure.database.models import (
    Account,
    CaseTransition,
    FailedAttempt,
    FraudCase,
    LedgerEntry,
    Transaction,
)
from fraudshield.domain.models import (
    RiskAssessment,
    Settlement,
    TransactionAttempt,
    TransactionStatus,
)


class AccountRepository:
    """Repository for accounts and balances"""

    def __init__(self, db: Session):
        self.db = db

    def create_account(self, email: str, balance: Decimal = Decimal("0")) -> Account:
        db_account = Account(email=email.strip().lower(), balance=balance)
        self.db.add(db_account)
        self.db.flush()
        return db_account

    def get_account(self, account_id: uuid.UUID) -> Optional[Account]:
        return self.db.get(Account, account_id)

    def get_by_email(self, email: str) -> Optional[Account]:
        return (
            self.db.query(Account)
            .filter(Account.email == email.strip().lower())
            .first()
        )

    def lock_accounts(self, account_ids: Iterable[uuid.UUID]) -> List[Account]:
        """
        Load accounts with row-level locks (SELECT ... FOR UPDATE).

        Rows are locked in id order so two transfers between the same pair
        of accounts cannot deadlock each other.
        """
        ids = sorted(set(account_ids), key=str)
        return (
            self.db.query(Account)
            .filter(Account.id.in_(ids))
            .order_by(Account.id)
            .with_for_update()
            .populate_existing()
            .all()
        )


class TransactionRepository:
    """Repository for recorded transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(
        self,
        attempt: TransactionAttempt,
        settlement: Settlement,
        assessment: RiskAssessment,
        idempotency_key: Optional[str] = None,
    ) -> Transaction:
        """Persist a settled attempt; caller owns the commit"""
        db_transaction = Transaction(
            id=settlement.reference,
            user_id=settlement.sender_id,
            recipient_id=settlement.recipient_id,
            amount=settlement.amount,
            merchant=attempt.merchant,
            category=attempt.category,
            transfer_type=settlement.transfer_kind.value,
            risk_score=assessment.score,
            is_fraudulent=assessment.flagged,
            status=TransactionStatus.APPROVED.value,
            location=attempt.location,
            device_id=attempt.device_id,
            ip_address=attempt.ip_address,
            idempotency_key=idempotency_key,
        )
        self.db.add(db_transaction)
        self.db.flush()  # Get ID without committing
        return db_transaction

    def get_transaction(self, transaction_id: uuid.UUID) -> Optional[Transaction]:
        return self.db.get(Transaction, transaction_id)

    def get_transactions_for_account(self, account_id: uuid.UUID, limit: int = 100) -> List[Transaction]:
        """Fetch recent transactions sent or received by an account"""
        return (
            self.db.query(Transaction)
            .filter(or_(Transaction.user_id == account_id, Transaction.recipient_id == account_id))
            .order_by(Transaction.created_at.desc())
            .limit(limit)
            .all()
        )

    def record_failure(
        self,
        sender_id: uuid.UUID,
        attempt: TransactionAttempt,
        reason: str,
        risk_score: Optional[float] = None,
        idempotency_key: Optional[str] = None,
    ) -> FailedAttempt:
        failure = FailedAttempt(
            user_id=sender_id,
            amount=attempt.amount,
            merchant=attempt.merchant,
            category=attempt.category,
            transfer_type=attempt.transfer_kind.value,
            recipient_email=attempt.recipient_email,
            risk_score=risk_score,
            reason=reason,
            idempotency_key=idempotency_key,
        )
        self.db.add(failure)
        self.db.flush()
        return failure


class LedgerEntryRepository:
    """Repository for ledger postings"""

    def __init__(self, db: Session):
        self.db = db

    def post(
        self,
        reference: uuid.UUID,
        account_id: uuid.UUID,
        amount: Decimal,
        direction: str,
        idempotency_key: Optional[str] = None,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            reference=reference,
            account_id=account_id,
            amount=amount,
            direction=direction,
            idempotency_key=idempotency_key,
        )
        self.db.add(entry)
        return entry

    def get_debit_for_key(self, account_id: uuid.UUID, idempotency_key: str) -> Optional[LedgerEntry]:
        """Debit a sender already posted under a key"""
        return (
            self.db.query(LedgerEntry)
            .filter(
                LedgerEntry.account_id == account_id,
                LedgerEntry.idempotency_key == idempotency_key,
                LedgerEntry.direction == "debit",
            )
            .first()
        )

    def get_credit_for_reference(self, reference: uuid.UUID) -> Optional[LedgerEntry]:
        return (
            self.db.query(LedgerEntry)
            .filter(LedgerEntry.reference == reference, LedgerEntry.direction == "credit")
            .first()
        )


class CaseRepository:
    """Repository for fraud cases and their transition history"""

    def __init__(self, db: Session):
        self.db = db

    def create_case(self, transaction_id: uuid.UUID, notes: Optional[str], status: str) -> FraudCase:
        db_case = FraudCase(transaction_id=transaction_id, notes=notes, status=status)
        self.db.add(db_case)
        self.db.flush()
        return db_case

    def add_transition(
        self,
        case: FraudCase,
        from_status: Optional[str],
        to_status: str,
        actor: str,
        note: Optional[str] = None,
    ) -> CaseTransition:
        transition = CaseTransition(
            case_id=case.id,
            from_status=from_status,
            to_status=to_status,
            actor=actor,
            note=note,
        )
        self.db.add(transition)
        return transition

    def get_case(self, case_id: uuid.UUID) -> Optional[FraudCase]:
        return self.db.get(FraudCase, case_id)

    def get_cases(self, limit: int = 50) -> List[FraudCase]:
        return (
            self.db.query(FraudCase)
            .order_by(FraudCase.created_at.desc())
            .limit(limit)
            .all()
        )
