"""Canonical build event sent to the event-ingestion endpoint."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .build import Repository, StatusPhase


class EventType(str, Enum):
    """Kind of source-control activity that triggered the build."""

    PUSH = "push"
    PULL_REQUEST = "pull_request"


class EventStatus(str, Enum):
    """Build status in wire format."""

    STARTED = "started"
    FAILED = "failed"
    ERROR = "error"
    PASSED = "passed"

    @classmethod
    def from_phase(cls, phase: StatusPhase) -> "EventStatus":
        return _PHASE_TO_STATUS[phase]


_PHASE_TO_STATUS = {
    StatusPhase.STARTED: EventStatus.STARTED,
    StatusPhase.FAILURE: EventStatus.FAILED,
    StatusPhase.ERROR: EventStatus.ERROR,
    StatusPhase.SUCCESS: EventStatus.PASSED,
}


class BuildEvent(BaseModel):
    """
    Normalized build event.

    Field names are the wire names. A push event always carries a non-empty
    branch and no pull request number; a pull request event always carries a
    number and no branch. Construction fails otherwise.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    type: EventType
    number: int
    name: str  # build type id
    pull_request_number: Optional[int] = None
    branch: Optional[str] = None
    build_url: str
    status: EventStatus
    commit: str
    provider: str
    repository: Repository
    duration: Optional[int] = None  # omitted while the build is running

    @model_validator(mode="after")
    def check_type_fields(self) -> "BuildEvent":
        if self.type == EventType.PULL_REQUEST:
            if self.pull_request_number is None:
                raise ValueError("pull_request event requires pull_request_number")
            if self.branch is not None:
                raise ValueError("pull_request event must not carry a branch")
        else:
            if not self.branch:
                raise ValueError("push event requires a non-empty branch")
            if self.pull_request_number is not None:
                raise ValueError("push event must not carry pull_request_number")
        return self

    def to_wire(self) -> dict:
        """Wire representation with absent optional fields left out."""
        return self.model_dump(mode="json", exclude_none=True)
