"""Transaction attempt validation"""

from decimal import Decimal, InvalidOperation

from fraudshield.domain.exceptions import ValidationError
from fraudshield.domain.models import TransactionAttempt, TransferKind

P2P_MERCHANT = "P2P Transfer"
CENT = Decimal("0.01")


def validate_attempt(attempt: TransactionAttempt) -> TransactionAttempt:
    """
    Check an attempt before it reaches the scorer or the ledger.

    Payments require a merchant; P2P transfers require a recipient email
    and default their merchant label.

    Raises:
        ValidationError: On missing or invalid amount, category, merchant or recipient
    """
    if attempt.amount is None or isinstance(attempt.amount, bool):
        raise ValidationError("Invalid transaction amount")
    try:
        amount = Decimal(str(attempt.amount))
    except (InvalidOperation, TypeError, ValueError) as e:
        raise ValidationError("Invalid transaction amount") from e

    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Invalid transaction amount")
    if amount != amount.quantize(CENT):
        raise ValidationError("Transaction amount has more than two decimal places")
    attempt.amount = amount

    if not attempt.category or not attempt.category.strip():
        raise ValidationError("Transaction category is required")

    try:
        attempt.transfer_kind = TransferKind(attempt.transfer_kind)
    except ValueError as e:
        raise ValidationError(f"Unknown transfer type: {attempt.transfer_kind}") from e

    if attempt.transfer_kind == TransferKind.P2P_TRANSFER:
        if not attempt.recipient_email or not attempt.recipient_email.strip():
            raise ValidationError("Recipient email is required for P2P transfers")
        attempt.merchant = attempt.merchant or P2P_MERCHANT
    elif not attempt.merchant or not attempt.merchant.strip():
        raise ValidationError("Invalid merchant name")

    return attempt
