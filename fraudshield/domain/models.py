"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional


class TransferKind(str, Enum):
    PAYMENT = "payment"
    P2P_TRANSFER = "p2p_transfer"


class TransactionStatus(str, Enum):
    APPROVED = "approved"
    FLAGGED = "flagged"
    DISPUTED = "disputed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CaseStatus(str, Enum):
    OPEN = "open"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    DISPUTED = "disputed"
    CLOSED = "closed"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class TransactionAttempt:
    """Card payment or P2P transfer submitted for scoring and settlement"""

    amount: Decimal
    category: str
    transfer_kind: TransferKind = TransferKind.PAYMENT
    merchant: Optional[str] = None
    location: Optional[str] = None
    device_id: Optional[str] = None
    ip_address: Optional[str] = None  # Network origin
    recipient_email: Optional[str] = None


@dataclass(frozen=True)
class RiskFactors:
    """Subscores and amplifiers behind a risk score"""

    amount_score: float
    category_score: float
    location_score: float
    verification_score: float
    base_score: float
    multipliers: List[float] = field(default_factory=list)


@dataclass(frozen=True)
class RiskAssessment:
    """Output of the risk scorer"""

    score: float
    risk_level: RiskLevel
    flagged: bool
    factors: Optional[RiskFactors] = None


@dataclass
class Settlement:
    """Outcome of a ledger settlement"""

    reference: uuid.UUID  # Transaction id the ledger entries point at
    sender_id: uuid.UUID
    recipient_id: Optional[uuid.UUID]
    amount: Decimal
    transfer_kind: TransferKind
    sender_balance: Optional[Decimal] = None
    recipient_balance: Optional[Decimal] = None
    replayed: bool = False


@dataclass
class RecordedTransaction:
    """What a submitter gets back for a settled attempt"""

    transaction_id: uuid.UUID
    status: TransactionStatus
    assessment: RiskAssessment
    sender_id: uuid.UUID
    recipient_id: Optional[uuid.UUID]
    amount: Decimal
    transfer_kind: TransferKind
    created_at: Optional[datetime] = None
    replayed: bool = False


@dataclass
class DisputeNotice:
    """Payload handed to the notification relay when a user disputes"""

    transaction_id: uuid.UUID
    user_id: uuid.UUID
    user_email: Optional[str]
    amount: Decimal
    merchant: Optional[str]
    dispute_reason: Optional[str]


@dataclass
class Beneficiary:
    account_id: uuid.UUID
    email: Optional[str]
    total_sent: Decimal
    last_transfer_date: datetime


@dataclass
class AccountSummary:
    """Aggregated view over an account's recorded transactions"""

    account_id: uuid.UUID
    total: int
    fraudulent: int
    success_rate: float
    monthly_spending: Dict[str, Decimal]
    monthly_received: Dict[str, Decimal]
    beneficiaries: List[Beneficiary]
