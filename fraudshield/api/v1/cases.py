"""GET/POST /v1/cases - fraud case review"""

import uuid
from fastapi import APIRouter, Depends, Query

from fraudshield.api.dependencies import get_case_manager
from fraudshield.api.errors import to_http_exception
from fraudshield.api.v1.schemas import (
    CaseListResponse,
    CaseResponse,
    CaseTransactionSummary,
    CaseTransitionItem,
    CaseTransitionRequest,
)
from fraudshield.domain.exceptions import DomainException
from fraudshield.infrastructure.database.models import FraudCase
from fraudshield.services.case_manager import CaseManager

router = APIRouter()


def to_case_response(fraud_case: FraudCase, include_transitions: bool = False) -> CaseResponse:
    transaction = fraud_case.transaction
    return CaseResponse(
        case_id=fraud_case.id,
        transaction_id=fraud_case.transaction_id,
        status=fraud_case.status,
        notes=fraud_case.notes,
        resolution=fraud_case.resolution,
        created_at=fraud_case.created_at,
        updated_at=fraud_case.updated_at,
        transaction=CaseTransactionSummary(
            amount=transaction.amount,
            merchant=transaction.merchant,
            created_at=transaction.created_at,
        )
        if transaction is not None
        else None,
        transitions=[
            CaseTransitionItem(
                from_status=t.from_status,
                to_status=t.to_status,
                actor=t.actor,
                note=t.note,
                created_at=t.created_at,
            )
            for t in fraud_case.transitions
        ]
        if include_transitions
        else [],
    )


@router.get("/cases", response_model=CaseListResponse)
def list_cases(
    limit: int = Query(50, ge=1, le=200),
    manager: CaseManager = Depends(get_case_manager),
):
    """Fraud cases with a summary of their transaction, newest first"""
    return CaseListResponse(cases=[to_case_response(c) for c in manager.list_cases(limit=limit)])


@router.get("/cases/{case_id}", response_model=CaseResponse)
def get_case(case_id: uuid.UUID, manager: CaseManager = Depends(get_case_manager)):
    try:
        fraud_case = manager.get_case(case_id)
    except DomainException as e:
        raise to_http_exception(e)
    return to_case_response(fraud_case, include_transitions=True)


@router.post("/cases/{case_id}/transitions", response_model=CaseResponse)
def transition_case(
    case_id: uuid.UUID,
    request_body: CaseTransitionRequest,
    manager: CaseManager = Depends(get_case_manager),
):
    """
    Reviewer action on a case.

    Allowed moves:
    - open -> investigating | closed
    - investigating -> resolved | disputed | closed
    - disputed -> investigating | closed
    - resolved, closed: terminal
    """
    try:
        fraud_case = manager.transition(
            case_id,
            request_body.status,
            actor=request_body.actor,
            notes=request_body.notes,
            resolution=request_body.resolution,
        )
    except DomainException as e:
        raise to_http_exception(e)
    return to_case_response(fraud_case, include_transitions=True)
