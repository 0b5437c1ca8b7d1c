"""
Build Notifier component.

Entry points called by the TeamCity host binding, one per build lifecycle
occurrence. Each sets the status phase of the build facts and hands the
occurrence to the dispatcher.
"""

from typing import Sequence

from teamcity_relay.models.api_response import Occurrence
from teamcity_relay.models.build import RawBuildFacts, StatusPhase, Subscriber
from teamcity_relay.models.outcome import DispatchReport
from teamcity_relay.services.dispatcher import NotificationDispatcher

OCCURRENCE_PHASES = {
    Occurrence.STARTED: StatusPhase.STARTED,
    Occurrence.FAILED: StatusPhase.FAILURE,
    Occurrence.FAILED_TO_START: StatusPhase.ERROR,
    Occurrence.SUCCEEDED: StatusPhase.SUCCESS,
}


class BuildNotifier:
    """Relays TeamCity build lifecycle callbacks."""

    def __init__(self, dispatcher: NotificationDispatcher):
        self.dispatcher = dispatcher

    async def notify(
        self,
        occurrence: Occurrence,
        facts: RawBuildFacts,
        subscribers: Sequence[Subscriber],
        revision_count: int = 1,
    ) -> DispatchReport:
        facts = facts.model_copy(update={"status_phase": OCCURRENCE_PHASES[occurrence]})
        return await self.dispatcher.dispatch(facts, subscribers, revision_count)

    async def notify_build_started(self, facts, subscribers, revision_count=1) -> DispatchReport:
        return await self.notify(Occurrence.STARTED, facts, subscribers, revision_count)

    async def notify_build_failed(self, facts, subscribers, revision_count=1) -> DispatchReport:
        return await self.notify(Occurrence.FAILED, facts, subscribers, revision_count)

    async def notify_build_failed_to_start(self, facts, subscribers, revision_count=1) -> DispatchReport:
        return await self.notify(Occurrence.FAILED_TO_START, facts, subscribers, revision_count)

    async def notify_build_successful(self, facts, subscribers, revision_count=1) -> DispatchReport:
        return await self.notify(Occurrence.SUCCEEDED, facts, subscribers, revision_count)
