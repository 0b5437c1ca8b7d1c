"""
Webhook Deliverer component.

Serializes build events and posts them to the event-ingestion endpoint.
A thrown transport error (connection refused, timeout, I/O failure) is
retried once after a fixed delay. HTTP status codes are not treated as
failures; the response body is returned for logging.
"""

import time
from typing import Optional

import httpx

from teamcity_relay.config import settings
from teamcity_relay.models.error import DeliveryError
from teamcity_relay.models.event import BuildEvent
from teamcity_relay.utils.logging import get_logger, log_api_call
from teamcity_relay.utils.resilience import retry_with_backoff

logger = get_logger(__name__)

DELIVERY_ATTEMPTS = 2
JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def team_webhook_url(base_url: str, team_id: str) -> str:
    """Destination URL for a team: <base>/<team_id>."""
    return f"{base_url.rstrip('/')}/{team_id}"


def serialize_event(event: BuildEvent) -> bytes:
    """Serialize an event to its JSON wire format."""
    return event.model_dump_json(exclude_none=True).encode("utf-8")


class WebhookDeliverer:
    """Posts serialized build events with a single bounded retry."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        retry_delay: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the deliverer.

        Args:
            client: Shared HTTP client; one is created when not given
            retry_delay: Seconds to wait before the retry
            timeout: HTTP timeout in seconds for a created client
        """
        self.retry_delay = settings.retry_delay_seconds if retry_delay is None else retry_delay
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=settings.http_timeout_seconds if timeout is None else timeout
        )

    async def deliver_event(self, url: str, event: BuildEvent) -> str:
        """Serialize and deliver an event; see deliver()."""
        return await self.deliver(url, serialize_event(event))

    async def deliver(self, url: str, body: bytes) -> str:
        """
        POST a serialized event.

        Args:
            url: Destination URL
            body: JSON body

        Returns:
            Raw response body

        Raises:
            DeliveryError: If both attempts fail with a transport error
        """
        post = retry_with_backoff(
            max_attempts=DELIVERY_ATTEMPTS,
            delay=self.retry_delay,
            exceptions=(httpx.TransportError,),
        )(self._post)

        try:
            return await post(url, body)
        except httpx.TransportError as e:
            raise DeliveryError(
                f"Delivery to {url} failed after {DELIVERY_ATTEMPTS} attempts: {e}",
                url=url,
                attempts=DELIVERY_ATTEMPTS,
            ) from e

    async def _post(self, url: str, body: bytes) -> str:
        start_time = time.time()
        try:
            response = await self.client.post(url, content=body, headers=JSON_HEADERS)
        except httpx.TransportError as e:
            log_api_call(
                logger,
                service="event_ingestion",
                endpoint=url,
                method="POST",
                duration_ms=(time.time() - start_time) * 1000,
                error=str(e) or type(e).__name__
            )
            raise

        log_api_call(
            logger,
            service="event_ingestion",
            endpoint=url,
            method="POST",
            status_code=response.status_code,
            duration_ms=(time.time() - start_time) * 1000
        )
        if not response.is_success:
            logger.warning(
                f"Event ingestion answered {response.status_code} for {url}",
                extra={"status_code": response.status_code}
            )
        return response.text

    async def close(self) -> None:
        """Close the HTTP client if this deliverer created it."""
        if self._owns_client:
            await self.client.aclose()
