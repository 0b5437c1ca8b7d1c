"""
Notification Dispatcher component.

Relays one build occurrence to every subscribed team. The branch is
classified once per occurrence, then each team runs the parse, build and
deliver sequence in its own asyncio task. A failure for one team never
stops the others.
"""

import asyncio
from typing import Optional, Sequence

from teamcity_relay.config import settings
from teamcity_relay.models.build import RawBuildFacts, Subscriber
from teamcity_relay.models.error import (
    DataShapeError,
    DeliveryError,
    ErrorRecord,
    InvalidEventError,
)
from teamcity_relay.models.outcome import DeliveryStatus, DispatchReport, TeamOutcome
from teamcity_relay.models.revision import Classification
from teamcity_relay.services.branch_classifier import BranchClassifier
from teamcity_relay.services.payload_builder import build_event, resolve_build_url
from teamcity_relay.services.repository_parser import parse_repository
from teamcity_relay.services.webhook_deliverer import WebhookDeliverer, team_webhook_url
from teamcity_relay.utils.logging import get_logger, log_build_event, log_error_with_context
from teamcity_relay.utils.resilience import handle_partial_failure

logger = get_logger(__name__)


class NotificationDispatcher:
    """Fans a build occurrence out to its subscribed teams."""

    def __init__(
        self,
        deliverer: WebhookDeliverer,
        webhook_base_url: Optional[str] = None,
        provider: Optional[str] = None,
        classifier: Optional[BranchClassifier] = None,
    ):
        """
        Initialize the dispatcher.

        Args:
            deliverer: Webhook deliverer shared by all teams
            webhook_base_url: Event-ingestion base URL, team IDs are appended
            provider: CI system name sent with each event
            classifier: Branch classifier
        """
        self.deliverer = deliverer
        self.webhook_base_url = webhook_base_url or settings.webhook_base_url
        self.provider = provider or settings.provider_name
        self.classifier = classifier or BranchClassifier()

    async def dispatch(
        self,
        facts: RawBuildFacts,
        subscribers: Sequence[Subscriber],
        revision_count: int = 1,
    ) -> DispatchReport:
        """
        Relay a build occurrence to all subscribed teams.

        Args:
            facts: Build facts for the occurrence
            subscribers: Teams to notify
            revision_count: Number of VCS revisions attached to the build

        Returns:
            DispatchReport with one outcome per team, or a skipped report
        """
        log_build_event(
            logger,
            build_id=facts.build_id,
            build_type_id=facts.build_type_id,
            phase=facts.status_phase.value,
            team_count=len(subscribers)
        )

        if revision_count != 1:
            reason = f"Expected 1 revision, saw {revision_count}"
            logger.warning(
                f"Skipping build {facts.build_id}: {reason}",
                extra={"build_id": facts.build_id, "revision_count": revision_count}
            )
            return DispatchReport(build_id=facts.build_id, skipped=True, skip_reason=reason)

        # Classification depends only on the build, not on the team
        classification = self.classifier.classify(facts)

        subscribers = tuple(subscribers)
        results = await asyncio.gather(
            *(self._notify_team(facts, classification, subscriber) for subscriber in subscribers),
            return_exceptions=True
        )

        outcomes = []
        for subscriber, result in zip(subscribers, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                log_error_with_context(
                    logger,
                    f"Unexpected error notifying team {subscriber.team_id}",
                    result,
                    build_id=facts.build_id,
                    team_id=subscriber.team_id
                )
                result = TeamOutcome(
                    team_id=subscriber.team_id,
                    status=DeliveryStatus.DELIVERY_FAILED,
                    error=f"{type(result).__name__}: {result}",
                    error_record=ErrorRecord.from_exception("dispatch", result),
                )
            outcomes.append(result)

        report = DispatchReport(build_id=facts.build_id, outcomes=outcomes)
        handle_partial_failure(
            operation_name="build notification",
            total_items=len(report.outcomes),
            successful_items=report.delivered_count,
            errors=[f"{o.team_id}: {o.error}" for o in report.outcomes if o.error],
            context={"build_id": facts.build_id}
        )
        return report

    async def _notify_team(
        self,
        facts: RawBuildFacts,
        classification: Classification,
        subscriber: Subscriber,
    ) -> TeamOutcome:
        team_logger = logger.with_context(build_id=facts.build_id, team_id=subscriber.team_id)

        outcome = {
            "team_id": subscriber.team_id,
            "warnings": classification.warnings,
            "degraded": classification.degraded,
        }

        try:
            repository = parse_repository(facts.repository_raw_url)
            event = build_event(
                facts,
                classification.ref,
                repository,
                build_url=resolve_build_url(facts, subscriber),
                provider=self.provider,
            )
        except DataShapeError as e:
            team_logger.error(f"Cannot build event: {e}")
            return TeamOutcome(
                status=DeliveryStatus.INVALID_DATA,
                error=str(e),
                error_record=ErrorRecord.from_exception("build", e),
                **outcome
            )
        except InvalidEventError as e:
            log_error_with_context(team_logger, "Refusing to send invalid event", e)
            return TeamOutcome(
                status=DeliveryStatus.INVALID_EVENT,
                error=str(e),
                error_record=ErrorRecord.from_exception("build", e),
                **outcome
            )

        url = team_webhook_url(self.webhook_base_url, subscriber.team_id)
        team_logger.debug(f"Sending event to {url}", extra={"event": event.to_wire()})

        try:
            response_body = await self.deliverer.deliver_event(url, event)
        except DeliveryError as e:
            log_error_with_context(team_logger, "Webhook delivery failed", e, url=url)
            return TeamOutcome(
                status=DeliveryStatus.DELIVERY_FAILED,
                error=str(e),
                error_record=ErrorRecord.from_exception("deliver", e),
                **outcome
            )

        team_logger.info(
            f"Event delivered to team {subscriber.team_id}",
            extra={"response_body": response_body}
        )
        return TeamOutcome(status=DeliveryStatus.DELIVERED, response_body=response_body, **outcome)
