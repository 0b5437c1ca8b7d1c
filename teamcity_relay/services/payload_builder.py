"""
Payload Builder component.

Combines build facts, the classified revision reference and the parsed
repository into a BuildEvent ready for delivery.
"""

import re
from typing import Optional
from urllib.parse import urlencode

from pydantic import ValidationError

from teamcity_relay.config import settings
from teamcity_relay.models.build import RawBuildFacts, Repository, StatusPhase, Subscriber
from teamcity_relay.models.error import InvalidEventError, MalformedBuildFactsError
from teamcity_relay.models.event import BuildEvent, EventStatus, EventType
from teamcity_relay.models.revision import PullRequestRef, PushRef, RevisionRef

_BUILD_NUMBER = re.compile(r"[0-9]+")


def resolve_build_url(facts: RawBuildFacts, subscriber: Optional[Subscriber] = None) -> str:
    """
    Return the link to the build log.

    Uses the URL extracted from TeamCity when present, otherwise builds the
    viewLog link from the TeamCity base URL the subscriber configured.
    """
    if facts.build_url:
        return facts.build_url
    if subscriber is None or not subscriber.base_url:
        return ""

    query = urlencode({
        "buildId": facts.build_id,
        "buildTypeId": facts.build_type_id,
        "tab": "buildLog",
    })
    return f"{subscriber.base_url.rstrip('/')}/viewLog.html?{query}"


def _build_number(facts: RawBuildFacts) -> int:
    if not _BUILD_NUMBER.fullmatch(facts.build_number):
        raise MalformedBuildFactsError(
            f"Build number {facts.build_number!r} of build {facts.build_id} is not an integer"
        )
    return int(facts.build_number)


def build_event(
    facts: RawBuildFacts,
    ref: RevisionRef,
    repository: Repository,
    build_url: Optional[str] = None,
    provider: Optional[str] = None,
) -> BuildEvent:
    """
    Build the canonical event for one build occurrence.

    Args:
        facts: Build facts
        ref: Classified revision reference
        repository: Parsed repository
        build_url: Link to the build, defaults to facts.build_url
        provider: Name of the CI system, defaults to settings.provider_name

    Returns:
        BuildEvent satisfying the push/pull request field invariant

    Raises:
        MalformedBuildFactsError: If the build number is not an integer
        InvalidEventError: If the event violates the field invariant
    """
    number = _build_number(facts)

    if isinstance(ref, PullRequestRef):
        fields = {"type": EventType.PULL_REQUEST, "pull_request_number": ref.number}
    elif isinstance(ref, PushRef):
        fields = {"type": EventType.PUSH, "branch": ref.branch}
    else:
        raise InvalidEventError(f"Unknown revision reference: {ref!r}")

    duration = None if facts.status_phase == StatusPhase.STARTED else facts.duration_seconds

    try:
        return BuildEvent(
            id=facts.build_id,
            number=number,
            name=facts.build_type_id,
            build_url=build_url if build_url is not None else facts.build_url,
            status=EventStatus.from_phase(facts.status_phase),
            commit=facts.revision_sha,
            provider=provider or settings.provider_name,
            repository=repository,
            duration=duration,
            **fields,
        )
    except ValidationError as e:
        raise InvalidEventError(f"Invalid event for build {facts.build_id}: {e}") from e
