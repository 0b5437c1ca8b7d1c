"""Data models for the TeamCity build relay."""

from .api_response import BuildOccurrenceRequest, Occurrence, WebhookResponse
from .build import RawBuildFacts, Repository, StatusPhase, Subscriber
from .error import (
    DataShapeError,
    DeliveryError,
    ErrorRecord,
    InvalidEventError,
    MalformedBuildFactsError,
    RelayError,
    RepositoryParseError,
)
from .event import BuildEvent, EventStatus, EventType
from .outcome import DeliveryStatus, DispatchReport, TeamOutcome
from .revision import (
    Classification,
    ClassificationWarning,
    PullRequestRef,
    PushRef,
    RevisionRef,
)

__all__ = [
    # Build models
    "StatusPhase",
    "RawBuildFacts",
    "Subscriber",
    "Repository",
    # Revision models
    "PushRef",
    "PullRequestRef",
    "RevisionRef",
    "Classification",
    "ClassificationWarning",
    # Event models
    "BuildEvent",
    "EventType",
    "EventStatus",
    # Outcome models
    "DeliveryStatus",
    "TeamOutcome",
    "DispatchReport",
    # Error models
    "ErrorRecord",
    "RelayError",
    "DataShapeError",
    "RepositoryParseError",
    "MalformedBuildFactsError",
    "InvalidEventError",
    "DeliveryError",
    # API models
    "Occurrence",
    "BuildOccurrenceRequest",
    "WebhookResponse",
]
