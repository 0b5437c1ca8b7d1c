"""Business logic services package."""

from teamcity_relay.services.branch_classifier import (
    BranchClassifier,
    strip_branch_prefixes,
    is_pull_request_ref,
)
from teamcity_relay.services.repository_parser import parse_repository
from teamcity_relay.services.payload_builder import (
    build_event,
    resolve_build_url,
)
from teamcity_relay.services.webhook_deliverer import (
    WebhookDeliverer,
    serialize_event,
    team_webhook_url,
)
from teamcity_relay.services.dispatcher import NotificationDispatcher
from teamcity_relay.services.notifier import BuildNotifier

__all__ = [
    'BranchClassifier',
    'strip_branch_prefixes',
    'is_pull_request_ref',
    'parse_repository',
    'build_event',
    'resolve_build_url',
    'WebhookDeliverer',
    'serialize_event',
    'team_webhook_url',
    'NotificationDispatcher',
    'BuildNotifier'
]
