"""Ledger service - affordability checks and all-or-nothing balance mutations"""

import logging
import uuid
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from fraudshield.config import settings
from fraudshield.domain.exceptions import (
    AccountNotFoundError,
    ConcurrencyConflictError,
    InsufficientFundsError,
    InvalidRecipientError,
    PersistenceError,
    SelfTransferError,
)
from fraudshield.domain.models import Settlement, TransactionAttempt, TransferKind
from fraudshield.infrastructure.database.identity import AccountIdentityResolver
from fraudshield.infrastructure.database.repositories import AccountRepository, LedgerEntryRepository
from fraudshield.infrastructure.observability.metrics import ledger_conflict_counter

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL serialization_failure and deadlock_detected
CONFLICT_PGCODES = {"40001", "40P01"}
UNIQUE_VIOLATION_PGCODE = "23505"

# A concurrent submission of the same (sender, key) trips one of these
IDEMPOTENCY_CONSTRAINTS = {"uq_ledger_entry_account_key_direction", "uq_transaction_sender_key"}


def is_idempotency_race(exc: IntegrityError) -> bool:
    """Unique violation on a sender-scoped idempotency key"""
    orig = exc.orig
    if getattr(orig, "pgcode", None) == UNIQUE_VIOLATION_PGCODE:
        constraint = getattr(getattr(orig, "diag", None), "constraint_name", None)
        return constraint in IDEMPOTENCY_CONSTRAINTS
    message = str(orig)
    return "UNIQUE constraint failed" in message and "idempotency_key" in message


def translate_db_error(exc: SQLAlchemyError) -> Exception:
    """Map a store error onto the domain taxonomy"""
    if isinstance(exc, StaleDataError):
        return ConcurrencyConflictError(str(exc))
    if isinstance(exc, IntegrityError):
        if is_idempotency_race(exc):
            return ConcurrencyConflictError(str(exc))
        return PersistenceError(str(exc))
    if isinstance(exc, OperationalError):
        pgcode = getattr(exc.orig, "pgcode", None)
        if pgcode in CONFLICT_PGCODES or "database is locked" in str(exc.orig):
            return ConcurrencyConflictError(str(exc))
    return PersistenceError(str(exc))


class LedgerService:
    """
    Owns account balances.

    `settle` only stages mutations in the session; `run_atomic` commits the
    staged work (ledger postings plus whatever the caller adds, such as the
    transaction record) as one unit and retries it on concurrency conflicts.
    """

    def __init__(
        self,
        db: Session,
        resolver: Optional[AccountIdentityResolver] = None,
        conflict_retries: Optional[int] = None,
    ):
        self.db = db
        self.resolver = resolver or AccountIdentityResolver(db)
        self.accounts = AccountRepository(db)
        self.entries = LedgerEntryRepository(db)
        self.conflict_retries = settings.ledger_conflict_retries if conflict_retries is None else conflict_retries

    def settle(
        self,
        attempt: TransactionAttempt,
        sender_id: uuid.UUID,
        idempotency_key: Optional[str] = None,
        reference: Optional[uuid.UUID] = None,
    ) -> Settlement:
        """
        Validate funds and stage the balance changes for an attempt.

        Payments debit the sender. P2P transfers debit the sender and
        credit the recipient under the same row locks. A key that already
        settled returns the earlier settlement with `replayed=True` and
        touches nothing.

        Raises:
            InvalidRecipientError: Recipient email does not resolve
            SelfTransferError: Recipient is the sender
            InsufficientFundsError: Sender balance below amount
            AccountNotFoundError: Sender account does not exist
            ConcurrencyConflictError: Another settlement changed a locked account
        """
        if idempotency_key:
            prior = self.find_settlement(sender_id, idempotency_key)
            if prior is not None:
                return prior

        reference = reference or uuid.uuid4()
        amount = attempt.amount

        recipient_id = None
        if attempt.transfer_kind == TransferKind.P2P_TRANSFER:
            recipient_id = self.resolver.resolve(attempt.recipient_email)
            if recipient_id is None:
                raise InvalidRecipientError("Invalid recipient email")
            if recipient_id == sender_id:
                raise SelfTransferError("Cannot transfer money to yourself")

        ids = [sender_id] + ([recipient_id] if recipient_id else [])
        locked = {account.id: account for account in self.accounts.lock_accounts(ids)}

        sender = locked.get(sender_id)
        if sender is None:
            raise AccountNotFoundError(f"Account {sender_id} not found")
        recipient = locked.get(recipient_id) if recipient_id else None
        if recipient_id and recipient is None:
            raise InvalidRecipientError("Invalid recipient email")

        if sender.balance < amount:
            raise InsufficientFundsError("Insufficient funds")

        sender.balance = sender.balance - amount
        self.entries.post(reference, sender.id, amount, "debit", idempotency_key)
        if recipient is not None:
            recipient.balance = recipient.balance + amount
            self.entries.post(reference, recipient.id, amount, "credit")

        try:
            self.db.flush()
        except SQLAlchemyError as e:
            raise translate_db_error(e) from e

        return Settlement(
            reference=reference,
            sender_id=sender.id,
            recipient_id=recipient.id if recipient is not None else None,
            amount=amount,
            transfer_kind=attempt.transfer_kind,
            sender_balance=sender.balance,
            recipient_balance=recipient.balance if recipient is not None else None,
        )

    def find_settlement(self, sender_id: uuid.UUID, idempotency_key: str) -> Optional[Settlement]:
        """Look up the settlement this sender already applied under a key"""
        debit = self.entries.get_debit_for_key(sender_id, idempotency_key)
        if debit is None:
            return None
        credit = self.entries.get_credit_for_reference(debit.reference)

        return Settlement(
            reference=debit.reference,
            sender_id=debit.account_id,
            recipient_id=credit.account_id if credit else None,
            amount=debit.amount,
            transfer_kind=TransferKind.P2P_TRANSFER if credit else TransferKind.PAYMENT,
            replayed=True,
        )

    def run_atomic(self, work: Callable[[], T]) -> T:
        """
        Run `work` and commit it as a single database transaction.

        Retry strategy:
        - ConcurrencyConflictError rolls back and reruns `work` from scratch
        - At most `conflict_retries` reruns, then the conflict surfaces
        - Any other error rolls back and propagates untouched
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                try:
                    result = work()
                    self.db.commit()
                    return result
                except SQLAlchemyError as e:
                    raise translate_db_error(e) from e
            except ConcurrencyConflictError:
                self.db.rollback()
                ledger_conflict_counter.inc()
                if attempt > self.conflict_retries:
                    logger.error("Ledger conflict retries exhausted", extra={"attempts": attempt})
                    raise
                logger.warning("Ledger conflict, retrying", extra={"attempt": attempt})
            except Exception:
                self.db.rollback()
                raise
