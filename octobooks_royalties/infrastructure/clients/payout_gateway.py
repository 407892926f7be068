"""Payout gateway webhook client with exponential backoff retry logic"""

import httpx
import asyncio
from typing import Dict, Any
from octobooks_royalties.config import settings
from octobooks_royalties.domain.exceptions import PayoutGatewayError
from octobooks_royalties.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter


class PayoutGatewayClient:
    """Client notifying the payment provider that a payout was approved"""

    def __init__(
        self,
        webhook_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.payout_webhook_url
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.timeout = settings.http_timeout_seconds
        self.transport = transport

    async def send_payout_event(self, payload: Dict[str, Any]) -> None:
        """
        Send PAYOUT_APPROVED event to the gateway with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on 5xx/4xx responses and network failures
        - Tracks latency histogram and failure counter

        Raises:
            PayoutGatewayError: After the last attempt fails
        """
        attempt = 0
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return  # Success

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise PayoutGatewayError(
                            f"Payout webhook failed after {attempt} attempts: {e}"
                        ) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
