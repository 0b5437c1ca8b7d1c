"""Unit tests for NotificationDispatcher component."""

import json
import logging

import httpx
import pytest
from unittest.mock import AsyncMock, Mock

from teamcity_relay.models.build import RawBuildFacts, StatusPhase, Subscriber
from teamcity_relay.models.error import DeliveryError
from teamcity_relay.models.outcome import DeliveryStatus
from teamcity_relay.models.revision import ClassificationWarning
from teamcity_relay.services.branch_classifier import BranchClassifier
from teamcity_relay.services.dispatcher import NotificationDispatcher
from teamcity_relay.services.webhook_deliverer import WebhookDeliverer

BASE_URL = "https://ingest.example.com/teams"


class RecordingTransport:
    """Transport double recording requests; fails for listed team IDs."""

    def __init__(self, failing_teams=()):
        self.failing_teams = set(failing_teams)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        team_id = request.url.path.rsplit("/", 1)[-1]
        if team_id in self.failing_teams:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text=f"ok {team_id}")

    def bodies(self):
        return [json.loads(r.content) for r in self.requests]


@pytest.fixture
def facts():
    """Create build facts for a successful push build."""
    return RawBuildFacts(
        build_id="1042",
        build_number="42",
        build_type_id="bt1",
        duration_seconds=93,
        status_phase=StatusPhase.SUCCESS,
        build_url="https://tc.example.com/viewLog.html?buildId=1042",
        vcs_branch_raw="refs/heads/main",
        repository_raw_url="https://github.com/acme/widget.git",
        revision_sha="abc123",
    )


def _dispatcher(transport) -> NotificationDispatcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
    deliverer = WebhookDeliverer(client=client, retry_delay=0.0)
    return NotificationDispatcher(deliverer, webhook_base_url=BASE_URL, provider="teamcity")


class TestNotificationDispatcher:
    """Test suite for NotificationDispatcher component."""

    @pytest.mark.asyncio
    async def test_push_build_end_to_end(self, facts):
        """One team, one POST with the normalized push event."""
        transport = RecordingTransport()
        dispatcher = _dispatcher(transport)

        report = await dispatcher.dispatch(facts, [Subscriber(team_id="T1")])

        assert len(transport.requests) == 1
        assert str(transport.requests[0].url) == f"{BASE_URL}/T1"
        body = transport.bodies()[0]
        assert body["type"] == "push"
        assert body["branch"] == "main"
        assert body["repository"] == {"owner_name": "acme", "name": "widget"}
        assert body["status"] == "passed"
        assert body["commit"] == "abc123"
        assert body["number"] == 42
        assert body["name"] == "bt1"
        assert body["provider"] == "teamcity"
        assert "pull_request_number" not in body

        assert report.skipped is False
        assert report.delivered_count == 1
        outcome = report.outcomes[0]
        assert outcome.team_id == "T1"
        assert outcome.status == DeliveryStatus.DELIVERED
        assert outcome.response_body == "ok T1"

    @pytest.mark.asyncio
    async def test_pull_request_build(self, facts):
        transport = RecordingTransport()
        dispatcher = _dispatcher(transport)
        facts = facts.model_copy(update={"vcs_branch_raw": "refs/pull/25/merge"})

        await dispatcher.dispatch(facts, [Subscriber(team_id="T1")])

        body = transport.bodies()[0]
        assert body["type"] == "pull_request"
        assert body["pull_request_number"] == 25
        assert "branch" not in body

    @pytest.mark.asyncio
    @pytest.mark.parametrize("revision_count", [0, 2, 3])
    async def test_ambiguous_revisions_skip_all_teams(self, facts, revision_count):
        """No delivery is attempted unless exactly one revision is attached."""
        transport = RecordingTransport()
        dispatcher = _dispatcher(transport)

        report = await dispatcher.dispatch(
            facts,
            [Subscriber(team_id="T1"), Subscriber(team_id="T2")],
            revision_count=revision_count,
        )

        assert transport.requests == []
        assert report.skipped is True
        assert str(revision_count) in report.skip_reason
        assert report.outcomes == []

    @pytest.mark.asyncio
    async def test_one_post_per_team(self, facts):
        transport = RecordingTransport()
        dispatcher = _dispatcher(transport)
        teams = ["T1", "T2", "T3"]

        report = await dispatcher.dispatch(facts, [Subscriber(team_id=t) for t in teams])

        posted = sorted(r.url.path.rsplit("/", 1)[-1] for r in transport.requests)
        assert posted == teams
        assert [o.team_id for o in report.outcomes] == teams
        assert report.delivered_count == 3

    @pytest.mark.asyncio
    async def test_branch_classified_once_per_occurrence(self, facts, caplog):
        transport = RecordingTransport()
        client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        classifier = Mock(wraps=BranchClassifier())
        dispatcher = NotificationDispatcher(
            WebhookDeliverer(client=client, retry_delay=0.0),
            webhook_base_url=BASE_URL,
            classifier=classifier,
        )
        facts = facts.model_copy(update={"vcs_branch_raw": None, "is_default_branch": True})

        with caplog.at_level(logging.WARNING, logger="teamcity_relay.services.branch_classifier"):
            report = await dispatcher.dispatch(
                facts, [Subscriber(team_id=t) for t in ("T1", "T2", "T3")]
            )

        assert classifier.classify.call_count == 1
        fallback_records = [
            r for r in caplog.records if r.name == "teamcity_relay.services.branch_classifier"
        ]
        assert len(fallback_records) == 1
        assert all(
            o.warnings == [ClassificationWarning.DEFAULT_BRANCH_ASSUMED] for o in report.outcomes
        )
        assert {b["branch"] for b in transport.bodies()} == {"master"}

    @pytest.mark.asyncio
    async def test_delivery_failure_isolated_to_team(self, facts):
        """A team whose delivery fails does not stop the others."""
        transport = RecordingTransport(failing_teams={"T2"})
        dispatcher = _dispatcher(transport)

        report = await dispatcher.dispatch(
            facts,
            [Subscriber(team_id="T1"), Subscriber(team_id="T2"), Subscriber(team_id="T3")],
        )

        statuses = {o.team_id: o.status for o in report.outcomes}
        assert statuses == {
            "T1": DeliveryStatus.DELIVERED,
            "T2": DeliveryStatus.DELIVERY_FAILED,
            "T3": DeliveryStatus.DELIVERED,
        }
        # T2 is tried twice, the others once
        assert len(transport.requests) == 4
        assert report.failed_count == 1

    @pytest.mark.asyncio
    async def test_malformed_repository_is_not_delivered(self, facts):
        transport = RecordingTransport()
        dispatcher = _dispatcher(transport)
        facts = facts.model_copy(update={"repository_raw_url": "widget.git"})

        report = await dispatcher.dispatch(facts, [Subscriber(team_id="T1")])

        assert transport.requests == []
        assert report.outcomes[0].status == DeliveryStatus.INVALID_DATA
        assert "widget.git" in report.outcomes[0].error
        assert report.outcomes[0].error_record.phase == "build"
        assert report.outcomes[0].error_record.error_type == "RepositoryParseError"

    @pytest.mark.asyncio
    async def test_degraded_classification_is_reported(self, facts):
        transport = RecordingTransport()
        dispatcher = _dispatcher(transport)
        facts = facts.model_copy(update={"vcs_branch_raw": "refs/heads/topic/merge"})

        report = await dispatcher.dispatch(facts, [Subscriber(team_id="T1")])

        outcome = report.outcomes[0]
        assert outcome.status == DeliveryStatus.DELIVERED
        assert outcome.degraded is True
        assert outcome.warnings == [ClassificationWarning.PULL_REQUEST_NUMBER_UNPARSEABLE]
        assert transport.bodies()[0]["pull_request_number"] == 0

    @pytest.mark.asyncio
    async def test_build_url_from_subscriber_base_url(self, facts):
        transport = RecordingTransport()
        dispatcher = _dispatcher(transport)
        facts = facts.model_copy(update={"build_url": ""})

        await dispatcher.dispatch(
            facts, [Subscriber(team_id="T1", base_url="https://tc.example.com")]
        )

        assert transport.bodies()[0]["build_url"] == (
            "https://tc.example.com/viewLog.html?buildId=1042&buildTypeId=bt1&tab=buildLog"
        )

    @pytest.mark.asyncio
    async def test_unexpected_error_isolated_to_team(self, facts):
        deliverer = AsyncMock(spec=WebhookDeliverer)
        deliverer.deliver_event.side_effect = [RuntimeError("bug"), "ok"]
        dispatcher = NotificationDispatcher(deliverer, webhook_base_url=BASE_URL)

        report = await dispatcher.dispatch(
            facts, [Subscriber(team_id="T1"), Subscriber(team_id="T2")]
        )

        statuses = sorted(o.status for o in report.outcomes)
        assert statuses == sorted([DeliveryStatus.DELIVERY_FAILED, DeliveryStatus.DELIVERED])
        failed = next(o for o in report.outcomes if o.status == DeliveryStatus.DELIVERY_FAILED)
        assert failed.error_record.phase == "dispatch"
        assert failed.error_record.error_type == "RuntimeError"

    @pytest.mark.asyncio
    async def test_delivery_error_from_deliverer(self, facts):
        deliverer = AsyncMock(spec=WebhookDeliverer)
        deliverer.deliver_event.side_effect = DeliveryError("down", url="u", attempts=2)
        dispatcher = NotificationDispatcher(deliverer, webhook_base_url=BASE_URL)

        report = await dispatcher.dispatch(facts, [Subscriber(team_id="T1")])

        assert report.outcomes[0].status == DeliveryStatus.DELIVERY_FAILED
        assert report.outcomes[0].error == "down"
        assert report.outcomes[0].error_record.phase == "deliver"

    @pytest.mark.asyncio
    async def test_no_subscribers(self, facts):
        transport = RecordingTransport()
        dispatcher = _dispatcher(transport)

        report = await dispatcher.dispatch(facts, [])

        assert report.outcomes == []
        assert transport.requests == []
