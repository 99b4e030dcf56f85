"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from fraudshield.domain.models import CaseStatus, RiskLevel, TransactionStatus, TransferKind


class AccountCreateRequest(BaseModel):
    """Request body for POST /v1/accounts"""

    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$", description="Account email")
    balance: Decimal = Field(Decimal("0"), ge=0, max_digits=14, decimal_places=2, description="Opening balance")


class AccountResponse(BaseModel):
    account_id: uuid.UUID
    email: str
    balance: Decimal
    created_at: datetime


class TransactionRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    user_id: uuid.UUID = Field(..., description="Sender account id")
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2, description="Amount to pay or send")
    category: str = Field(..., min_length=1, description="Merchant category")
    transfer_type: TransferKind = TransferKind.PAYMENT
    merchant: Optional[str] = None
    recipient_email: Optional[str] = Field(None, description="Required for P2P transfers")
    location: Optional[str] = None
    device_id: Optional[str] = None
    ip_address: Optional[str] = None


class TransactionResponse(BaseModel):
    """Response for POST /v1/transactions"""

    transaction_id: uuid.UUID
    status: TransactionStatus
    risk_score: float
    risk_level: RiskLevel
    flagged: bool
    created_at: Optional[datetime] = None


class TransactionDetail(BaseModel):
    transaction_id: uuid.UUID
    user_id: uuid.UUID
    recipient_id: Optional[uuid.UUID] = None
    amount: Decimal
    merchant: Optional[str] = None
    category: str
    transfer_type: TransferKind
    status: TransactionStatus
    risk_score: float
    is_fraudulent: bool
    location: Optional[str] = None
    device_id: Optional[str] = None
    ip_address: Optional[str] = None
    dispute_reason: Optional[str] = None
    created_at: datetime


class TransactionListResponse(BaseModel):
    """Response for GET /v1/transactions"""

    user_id: uuid.UUID
    transactions: List[TransactionDetail]


class ReportRequest(BaseModel):
    """Request body for POST /v1/transactions/{id}/report"""

    notes: Optional[str] = None


class DisputeRequest(BaseModel):
    """Request body for POST /v1/transactions/{id}/dispute"""

    reason: Optional[str] = None


class CaseTransitionRequest(BaseModel):
    """Request body for POST /v1/cases/{id}/transitions"""

    status: CaseStatus
    actor: str = Field("reviewer", min_length=1)
    notes: Optional[str] = None
    resolution: Optional[str] = None


class CaseTransitionItem(BaseModel):
    from_status: Optional[CaseStatus] = None
    to_status: CaseStatus
    actor: str
    note: Optional[str] = None
    created_at: datetime


class CaseTransactionSummary(BaseModel):
    amount: Decimal
    merchant: Optional[str] = None
    created_at: datetime


class CaseResponse(BaseModel):
    case_id: uuid.UUID
    transaction_id: uuid.UUID
    status: CaseStatus
    notes: Optional[str] = None
    resolution: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    transaction: Optional[CaseTransactionSummary] = None
    transitions: List[CaseTransitionItem] = []


class CaseListResponse(BaseModel):
    cases: List[CaseResponse]


class BeneficiaryItem(BaseModel):
    account_id: uuid.UUID
    email: Optional[str] = None
    total_sent: Decimal
    last_transfer_date: datetime


class AccountSummaryResponse(BaseModel):
    """Response for GET /v1/accounts/{id}/summary"""

    account_id: uuid.UUID
    total: int
    fraudulent: int
    success_rate: float
    monthly_spending: Dict[str, Decimal]
    monthly_received: Dict[str, Decimal]
    beneficiaries: List[BeneficiaryItem]
