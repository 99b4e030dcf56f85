"""Notification relay HTTP client for dispute alerts"""

import logging
import httpx
from fraudshield.domain.models import DisputeNotice
from fraudshield.config import settings
from fraudshield.infrastructure.observability.metrics import notification_failure_counter

logger = logging.getLogger(__name__)


class NotificationClient:
    """Client for the external notification relay (admin dispute emails)"""

    def __init__(
        self,
        relay_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.relay_url = relay_url or settings.notification_relay_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def send_dispute_alert(self, notice: DisputeNotice) -> bool:
        """
        Tell the relay a transaction was disputed.

        Best-effort: failures are logged and counted, never raised, so a
        committed dispute is never undone by a delivery problem.

        Returns:
            True if the relay accepted the alert
        """
        payload = {
            "event": "TRANSACTION_DISPUTED",
            "transactionId": str(notice.transaction_id),
            "userId": str(notice.user_id),
            "userEmail": notice.user_email,
            "amount": str(notice.amount),
            "merchant": notice.merchant,
            "disputeReason": notice.dispute_reason,
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(self.relay_url, json=payload)
                response.raise_for_status()
                return True

            except httpx.TimeoutException:
                logger.warning(
                    f"Notification relay timeout after {self.timeout}s",
                    extra={"transaction_id": str(notice.transaction_id)},
                )
            except httpx.HTTPStatusError as e:
                logger.warning(
                    f"Notification relay error: {e.response.status_code}",
                    extra={"transaction_id": str(notice.transaction_id)},
                )
            except httpx.RequestError as e:
                logger.warning(
                    f"Notification relay unreachable: {e}",
                    extra={"transaction_id": str(notice.transaction_id)},
                )

        notification_failure_counter.inc()
        return False
