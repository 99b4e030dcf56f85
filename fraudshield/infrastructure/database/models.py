"""SQLAlchemy ORM models for accounts, transactions, ledger entries and fraud cases"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Boolean,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

Money = Numeric(14, 2)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    """User account holding a balance"""

    __tablename__ = "accounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True, index=True)
    balance = Column(Money, nullable=False, default=0)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Compare-and-swap on every balance UPDATE; a lost update raises StaleDataError
    __mapper_args__ = {"version_id_col": version}


class Transaction(Base):
    """Settled payment or P2P transfer with its risk assessment"""

    __tablename__ = "transactions"
    # Idempotency keys are scoped to the sender
    __table_args__ = (UniqueConstraint("user_id", "idempotency_key", name="uq_transaction_sender_key"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False, index=True)
    recipient_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=True, index=True)
    amount = Column(Money, nullable=False)
    merchant = Column(Text, nullable=True)
    category = Column(Text, nullable=False)
    transfer_type = Column(Text, nullable=False)
    risk_score = Column(Float, nullable=False)
    is_fraudulent = Column(Boolean, nullable=False)
    status = Column(Text, nullable=False, default="approved")
    location = Column(Text, nullable=True)
    device_id = Column(Text, nullable=True)
    ip_address = Column(Text, nullable=True)
    dispute_reason = Column(Text, nullable=True)
    idempotency_key = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    sender = relationship("Account", foreign_keys=[user_id])
    recipient = relationship("Account", foreign_keys=[recipient_id])
    cases = relationship("FraudCase", back_populates="transaction")


class LedgerEntry(Base):
    """Single balance movement; a P2P transfer posts a debit and a credit"""

    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint("account_id", "idempotency_key", "direction", name="uq_ledger_entry_account_key_direction"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reference = Column(UUID(as_uuid=True), nullable=False, index=True)  # Transaction id
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    direction = Column(Text, nullable=False)  # "debit" or "credit"
    idempotency_key = Column(Text, nullable=True)  # Sender key, set on the debit only
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class FailedAttempt(Base):
    """Audit entry for an attempt the ledger rejected"""

    __tablename__ = "failed_attempts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    amount = Column(Money, nullable=False)
    merchant = Column(Text, nullable=True)
    category = Column(Text, nullable=False)
    transfer_type = Column(Text, nullable=False)
    recipient_email = Column(Text, nullable=True)
    risk_score = Column(Float, nullable=True)
    reason = Column(Text, nullable=False)
    idempotency_key = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class FraudCase(Base):
    """Investigation record opened against a transaction"""

    __tablename__ = "fraud_cases"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    transaction_id = Column(UUID(as_uuid=True), ForeignKey("transactions.id"), nullable=False, index=True)
    status = Column(Text, nullable=False, default="open")
    notes = Column(Text, nullable=True)
    resolution = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    transaction = relationship("Transaction", back_populates="cases")
    transitions = relationship(
        "CaseTransition",
        back_populates="case",
        order_by="CaseTransition.created_at",
    )


class CaseTransition(Base):
    """Audit trail of case status changes"""

    __tablename__ = "case_transitions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id = Column(UUID(as_uuid=True), ForeignKey("fraud_cases.id"), nullable=False, index=True)
    from_status = Column(Text, nullable=True)  # None when the case is created
    to_status = Column(Text, nullable=False)
    actor = Column(Text, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    case = relationship("FraudCase", back_populates="transitions")
