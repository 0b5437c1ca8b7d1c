"""
Webhook endpoints for the TeamCity host binding.
"""

import hashlib
import hmac
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request
from pydantic import ValidationError

from teamcity_relay.config import settings
from teamcity_relay.models.api_response import BuildOccurrenceRequest, WebhookResponse
from teamcity_relay.services.dispatcher import NotificationDispatcher
from teamcity_relay.services.notifier import BuildNotifier
from teamcity_relay.services.webhook_deliverer import WebhookDeliverer
from teamcity_relay.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

# Shared by every request; closed on application shutdown
deliverer = WebhookDeliverer()
notifier = BuildNotifier(NotificationDispatcher(deliverer))


def verify_webhook_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """
    Verify webhook signature for security.

    Args:
        payload: Raw request payload
        signature: Hex HMAC-SHA256 from request header, optionally prefixed 'sha256='
        secret: Shared secret

    Returns:
        True if signature is valid, False otherwise
    """
    if not signature:
        return False

    if signature.startswith("sha256="):
        signature = signature[len("sha256="):]

    expected_signature = hmac.new(
        secret.encode(),
        payload,
        hashlib.sha256
    ).hexdigest()

    return hmac.compare_digest(signature, expected_signature)


async def process_occurrence_async(occurrence: BuildOccurrenceRequest) -> None:
    """
    Relay a build occurrence in the background.

    Args:
        occurrence: Build occurrence to relay
    """
    try:
        await notifier.notify(
            occurrence.occurrence,
            occurrence.facts,
            occurrence.subscribers,
            occurrence.revision_count,
        )
    except Exception as e:
        logger.error(f"Error relaying build occurrence: {e}", exc_info=True)


@router.post("/teamcity/builds", response_model=WebhookResponse, status_code=202)
async def handle_build_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature: Optional[str] = Header(None, alias="X-Hub-Signature-256")
) -> WebhookResponse:
    """
    Receive a build occurrence from the TeamCity host binding.

    This endpoint:
    1. Validates the webhook signature when a secret is configured
    2. Parses the build occurrence payload
    3. Schedules relaying to every subscribed team
    4. Returns 202 Accepted immediately

    Raises:
        HTTPException: If signature validation fails or payload is invalid
    """
    payload = await request.body()

    secret = settings.inbound_webhook_secret
    if secret and not verify_webhook_signature(payload, x_hub_signature, secret):
        logger.warning("Invalid webhook signature received")
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    try:
        occurrence = BuildOccurrenceRequest.model_validate_json(payload)
    except ValidationError as e:
        logger.error(f"Invalid build occurrence payload: {e.error_count()} errors")
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False, include_input=False)
        )

    facts = occurrence.facts
    logger.info(
        f"Received {occurrence.occurrence.value} for build {facts.build_id} "
        f"with {len(occurrence.subscribers)} subscribers",
        extra={"build_id": facts.build_id}
    )

    background_tasks.add_task(process_occurrence_async, occurrence)

    return WebhookResponse(
        status="accepted",
        message=f"Build {facts.build_id} accepted for relaying"
    )
