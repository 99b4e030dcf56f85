"""POST/GET /v1/transactions - submit, list and act on transactions"""

import time
import uuid
import logging
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from fraudshield.api.dependencies import (
    get_case_manager,
    get_event_publisher,
    get_notification_client,
    get_recorder,
    get_request_id,
)
from fraudshield.api.errors import to_http_exception
from fraudshield.api.v1.cases import to_case_response
from fraudshield.api.v1.schemas import (
    CaseResponse,
    DisputeRequest,
    ReportRequest,
    TransactionDetail,
    TransactionListResponse,
    TransactionRequest,
    TransactionResponse,
)
from fraudshield.domain.exceptions import DomainException, TransactionNotFoundError
from fraudshield.domain.models import TransactionAttempt
from fraudshield.infrastructure.clients.events import EventPublisher, transaction_recorded_event
from fraudshield.infrastructure.clients.notifications import NotificationClient
from fraudshield.infrastructure.database.models import Transaction
from fraudshield.infrastructure.database.repositories import TransactionRepository
from fraudshield.infrastructure.database.session import get_db
from fraudshield.infrastructure.observability.logging import log_transaction
from fraudshield.services.case_manager import CaseManager
from fraudshield.services.recorder import TransactionRecorder

router = APIRouter()


def to_detail(t: Transaction) -> TransactionDetail:
    return TransactionDetail(
        transaction_id=t.id,
        user_id=t.user_id,
        recipient_id=t.recipient_id,
        amount=t.amount,
        merchant=t.merchant,
        category=t.category,
        transfer_type=t.transfer_type,
        status=t.status,
        risk_score=t.risk_score,
        is_fraudulent=t.is_fraudulent,
        location=t.location,
        device_id=t.device_id,
        ip_address=t.ip_address,
        dispute_reason=t.dispute_reason,
        created_at=t.created_at,
    )


@router.post("/transactions", response_model=TransactionResponse)
def create_transaction(
    request_body: TransactionRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    recorder: TransactionRecorder = Depends(get_recorder),
    event_publisher: EventPublisher = Depends(get_event_publisher),
):
    """
    Score and settle a payment or P2P transfer.

    Flow:
    1. Score the attempt
    2. Settle through the ledger and persist the record in one commit
    3. Publish a TRANSACTION_RECORDED event in the background
    4. Return the risk assessment

    Flagged attempts still settle; only ledger rejections stop funds moving.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    attempt = TransactionAttempt(
        amount=request_body.amount,
        category=request_body.category,
        transfer_kind=request_body.transfer_type,
        merchant=request_body.merchant,
        location=request_body.location,
        device_id=request_body.device_id,
        ip_address=request_body.ip_address,
        recipient_email=request_body.recipient_email,
    )

    try:
        recorded = recorder.record(attempt, request_body.user_id, idempotency_key=idempotency_key)

    except DomainException as e:
        logging.warning(
            f"Transaction rejected: {e}",
            extra={"request_id": request_id, "error": type(e).__name__},
        )
        raise to_http_exception(e)

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if recorded.replayed:
        response.headers["Idempotent-Replayed"] = "true"
    elif event_publisher.enabled:
        background_tasks.add_task(event_publisher.publish, transaction_recorded_event(recorded))

    duration_ms = (time.time() - start_time) * 1000
    log_transaction(
        request_id,
        str(request_body.user_id),
        str(recorded.transaction_id),
        recorded.status.value,
        recorded.assessment.score,
        recorded.assessment.flagged,
        duration_ms,
        replayed=recorded.replayed,
    )

    return TransactionResponse(
        transaction_id=recorded.transaction_id,
        status=recorded.status,
        risk_score=recorded.assessment.score,
        risk_level=recorded.assessment.risk_level,
        flagged=recorded.assessment.flagged,
        created_at=recorded.created_at,
    )


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    user_id: uuid.UUID = Query(..., description="Account identifier"),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Recent transactions sent or received by an account, newest first"""
    transactions = TransactionRepository(db).get_transactions_for_account(user_id, limit=limit)
    return TransactionListResponse(user_id=user_id, transactions=[to_detail(t) for t in transactions])


@router.get("/transactions/{transaction_id}", response_model=TransactionDetail)
def get_transaction(transaction_id: uuid.UUID, db: Session = Depends(get_db)):
    transaction = TransactionRepository(db).get_transaction(transaction_id)
    if transaction is None:
        raise to_http_exception(TransactionNotFoundError(f"Transaction {transaction_id} not found"))
    return to_detail(transaction)


@router.post("/transactions/{transaction_id}/report", response_model=CaseResponse, status_code=201)
def report_transaction(
    transaction_id: uuid.UUID,
    request_body: ReportRequest,
    manager: CaseManager = Depends(get_case_manager),
):
    """Report a transaction as suspicious: opens a case and flags the transaction"""
    try:
        fraud_case = manager.report(transaction_id, request_body.notes)
    except DomainException as e:
        raise to_http_exception(e)
    return to_case_response(fraud_case)


@router.post("/transactions/{transaction_id}/dispute", response_model=TransactionDetail)
def dispute_transaction(
    transaction_id: uuid.UUID,
    request_body: DisputeRequest,
    background_tasks: BackgroundTasks,
    manager: CaseManager = Depends(get_case_manager),
    notification_client: NotificationClient = Depends(get_notification_client),
):
    """
    Dispute a transaction.

    The status change is committed before the notification relay is
    called; relay failures never undo it.
    """
    try:
        notice = manager.dispute(transaction_id, request_body.reason)
    except DomainException as e:
        raise to_http_exception(e)

    background_tasks.add_task(notification_client.send_dispute_alert, notice)
    return to_detail(manager.transactions.get_transaction(transaction_id))
