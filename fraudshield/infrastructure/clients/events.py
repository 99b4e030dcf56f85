"""Outbound event webhook client with exponential backoff retry logic"""

import asyncio
import logging
from typing import Any, Dict

import httpx
from fraudshield.config import settings
from fraudshield.domain.models import RecordedTransaction
from fraudshield.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)


def transaction_recorded_event(recorded: RecordedTransaction) -> Dict[str, Any]:
    return {
        "event": "TRANSACTION_RECORDED",
        "transaction_id": str(recorded.transaction_id),
        "user_id": str(recorded.sender_id),
        "recipient_id": str(recorded.recipient_id) if recorded.recipient_id else None,
        "amount": str(recorded.amount),
        "transfer_type": recorded.transfer_kind.value,
        "status": recorded.status.value,
        "risk_score": recorded.assessment.score,
        "risk_level": recorded.assessment.risk_level.value,
        "flagged": recorded.assessment.flagged,
    }


class EventPublisher:
    """Client for sending engine events to external subscribers"""

    def __init__(self, webhook_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.webhook_url = settings.event_webhook_url if webhook_url is None else webhook_url
        self.max_retries = settings.webhook_max_retries
        self.backoff_base = settings.webhook_backoff_base
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    async def publish(self, payload: Dict[str, Any]) -> None:
        """
        Send an event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on 5xx errors and network failures
        - Tracks latency histogram and failure counter
        - Gives up with an error log; events never fail a request

        Args:
            payload: Event data to send
        """
        if not self.enabled:
            return

        attempt = 0
        async with httpx.AsyncClient(transport=self.transport) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(
                            self.webhook_url,
                            json=payload,
                            timeout=10.0,
                        )
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        logger.error(
                            f"Event delivery failed after {attempt} attempts: {e}",
                            extra={"event": payload.get("event")},
                        )
                        return

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
