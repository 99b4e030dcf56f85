"""Account reporting - statistics, monthly totals and beneficiaries"""

import uuid
from typing import Dict, List

from sqlalchemy.orm import Session

from fraudshield.domain.exceptions import AccountNotFoundError
from fraudshield.domain.models import AccountSummary, Beneficiary, TransferKind
from fraudshield.infrastructure.database.models import Transaction
from fraudshield.infrastructure.database.repositories import AccountRepository, TransactionRepository
from fraudshield.utils.date_utils import sum_by_month


def calculate_stats(transactions: List[Transaction]) -> tuple[int, int, float]:
    """
    Returns: (total, fraudulent, success_rate)

    success_rate is the percentage of non-fraudulent transactions, one decimal.
    """
    total = len(transactions)
    fraudulent = sum(1 for t in transactions if t.is_fraudulent)
    success_rate = ((total - fraudulent) / total) * 100 if total else 0.0
    return total, fraudulent, round(success_rate, 1)


def group_beneficiaries(transfers: List[Transaction]) -> List[Beneficiary]:
    """Group outgoing P2P transfers by recipient, most recent recipient first"""
    by_recipient: Dict[uuid.UUID, Beneficiary] = {}
    for transfer in transfers:
        if transfer.recipient_id is None:
            continue
        existing = by_recipient.get(transfer.recipient_id)
        if existing is None:
            by_recipient[transfer.recipient_id] = Beneficiary(
                account_id=transfer.recipient_id,
                email=transfer.recipient.email if transfer.recipient else None,
                total_sent=transfer.amount,
                last_transfer_date=transfer.created_at,
            )
        else:
            existing.total_sent += transfer.amount
            existing.last_transfer_date = max(existing.last_transfer_date, transfer.created_at)

    return sorted(by_recipient.values(), key=lambda b: b.last_transfer_date, reverse=True)


class ReportingService:
    def __init__(self, db: Session):
        self.accounts = AccountRepository(db)
        self.transactions = TransactionRepository(db)

    def summarize(self, account_id: uuid.UUID, limit: int = 100) -> AccountSummary:
        if self.accounts.get_account(account_id) is None:
            raise AccountNotFoundError(f"Account {account_id} not found")

        recent = self.transactions.get_transactions_for_account(account_id, limit=limit)
        sent = [t for t in recent if t.user_id == account_id]
        received = [
            t for t in recent
            if t.recipient_id == account_id and t.transfer_type == TransferKind.P2P_TRANSFER.value
        ]
        outgoing_transfers = [t for t in sent if t.transfer_type == TransferKind.P2P_TRANSFER.value]

        total, fraudulent, success_rate = calculate_stats(sent)

        return AccountSummary(
            account_id=account_id,
            total=total,
            fraudulent=fraudulent,
            success_rate=success_rate,
            monthly_spending=sum_by_month((t.created_at, t.amount) for t in sent),
            monthly_received=sum_by_month((t.created_at, t.amount) for t in received),
            beneficiaries=group_beneficiaries(outgoing_transfers),
        )
