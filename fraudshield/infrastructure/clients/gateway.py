"""Caller-side client for submitting transactions with bounded retries"""

import asyncio
import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx
from fraudshield.config import settings

logger = logging.getLogger(__name__)

# 409: ledger conflict retries exhausted on the server
RETRYABLE_STATUS_CODES = {409, 429}


class SubmissionError(Exception):
    """Submission was rejected or could not be delivered"""

    def __init__(self, message: str, status_code: Optional[int] = None, detail: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


def _is_retryable(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


def _detail(response: httpx.Response) -> Any:
    try:
        return response.json().get("detail")
    except ValueError:
        return response.text


class FraudShieldClient:
    """Submits attempts to the engine over HTTP"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_attempts: int | None = None,
        backoff_base: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.client_base_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_attempts = max_attempts or settings.client_max_attempts
        self.backoff_base = settings.client_backoff_base if backoff_base is None else backoff_base
        self.transport = transport

    async def submit_transaction(
        self,
        user_id: str,
        amount: Decimal,
        category: str,
        transfer_type: str = "payment",
        merchant: Optional[str] = None,
        recipient_email: Optional[str] = None,
        location: Optional[str] = None,
        device_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Submit one logical attempt, retrying transient failures.

        Every retry reuses the same idempotency key, so an attempt that
        settled before a timeout is replayed rather than applied again.

        Retry strategy:
        - At most `max_attempts` requests (default 3)
        - Exponential backoff: 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on network errors, timeouts, 5xx and 409
        - Business rejections (400/404/422) are raised immediately

        Raises:
            SubmissionError: On rejection or once attempts are exhausted
        """
        key = idempotency_key or str(uuid.uuid4())
        body = {
            "user_id": str(user_id),
            "amount": str(amount),
            "category": category,
            "transfer_type": transfer_type,
            "merchant": merchant,
            "recipient_email": recipient_email,
            "location": location,
            "device_id": device_id,
            "ip_address": ip_address,
        }

        attempt = 0
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            while True:
                attempt += 1
                try:
                    response = await client.post(
                        "/v1/transactions",
                        json=body,
                        headers={"Idempotency-Key": key},
                    )
                    response.raise_for_status()
                    return response.json()

                except httpx.HTTPStatusError as e:
                    status_code = e.response.status_code
                    if not _is_retryable(status_code) or attempt >= self.max_attempts:
                        raise SubmissionError(
                            f"Transaction submission failed: {status_code}",
                            status_code=status_code,
                            detail=_detail(e.response),
                        ) from e

                except httpx.RequestError as e:
                    if attempt >= self.max_attempts:
                        raise SubmissionError(f"Transaction service unreachable: {e}") from e

                backoff = self.backoff_base * (2 ** (attempt - 1))
                logger.warning(
                    f"Submission attempt {attempt} failed, retrying in {backoff}s",
                    extra={"idempotency_key": key},
                )
                await asyncio.sleep(backoff)
