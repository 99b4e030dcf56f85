"""POST/GET /v1/accounts - open accounts, read balances and summaries"""

import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fraudshield.api.dependencies import get_reporting
from fraudshield.api.errors import to_http_exception
from fraudshield.api.v1.schemas import (
    AccountCreateRequest,
    AccountResponse,
    AccountSummaryResponse,
    BeneficiaryItem,
)
from fraudshield.domain.exceptions import AccountNotFoundError, DomainException
from fraudshield.infrastructure.database.models import Account
from fraudshield.infrastructure.database.repositories import AccountRepository
from fraudshield.infrastructure.database.session import get_db
from fraudshield.services.reporting import ReportingService

router = APIRouter()


def to_account_response(account: Account) -> AccountResponse:
    return AccountResponse(
        account_id=account.id,
        email=account.email,
        balance=account.balance,
        created_at=account.created_at,
    )


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(request_body: AccountCreateRequest, db: Session = Depends(get_db)):
    """Open an account with an opening balance"""
    try:
        account = AccountRepository(db).create_account(request_body.email, request_body.balance)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Account with this email already exists")
    return to_account_response(account)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(account_id: uuid.UUID, db: Session = Depends(get_db)):
    account = AccountRepository(db).get_account(account_id)
    if account is None:
        raise to_http_exception(AccountNotFoundError(f"Account {account_id} not found"))
    return to_account_response(account)


@router.get("/accounts/{account_id}/summary", response_model=AccountSummaryResponse)
def get_account_summary(account_id: uuid.UUID, reporting: ReportingService = Depends(get_reporting)):
    """
    Statistics over an account's recent transactions.

    Returns:
        Totals, fraud share, monthly spending/received and P2P beneficiaries
    """
    try:
        summary = reporting.summarize(account_id)
    except DomainException as e:
        raise to_http_exception(e)

    return AccountSummaryResponse(
        account_id=summary.account_id,
        total=summary.total,
        fraudulent=summary.fraudulent,
        success_rate=summary.success_rate,
        monthly_spending=summary.monthly_spending,
        monthly_received=summary.monthly_received,
        beneficiaries=[
            BeneficiaryItem(
                account_id=b.account_id,
                email=b.email,
                total_sent=b.total_sent,
                last_transfer_date=b.last_transfer_date,
            )
            for b in summary.beneficiaries
        ],
    )
