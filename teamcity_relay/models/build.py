"""Build occurrence data models consumed from the TeamCity host binding."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StatusPhase(str, Enum):
    """Lifecycle phase of a build as reported by TeamCity."""

    STARTED = "STARTED"
    FAILURE = "FAILURE"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


class RawBuildFacts(BaseModel):
    """Facts extracted from a single TeamCity build and its one revision."""

    model_config = ConfigDict(frozen=True)

    build_id: str
    build_number: str
    build_type_id: str
    duration_seconds: int = 0
    status_phase: StatusPhase
    build_url: str = ""
    vcs_branch_raw: Optional[str] = None  # 'refs/heads/main', 'main', 'refs/pull/25/merge'
    vcs_root_default_branch_raw: Optional[str] = None
    repository_raw_url: str
    revision_sha: str
    is_default_branch: bool = False


class Subscriber(BaseModel):
    """A team that should receive a webhook for each build occurrence."""

    model_config = ConfigDict(frozen=True)

    team_id: str = Field(min_length=1)
    base_url: Optional[str] = None  # TeamCity base URL configured by the subscriber


class Repository(BaseModel):
    """Repository owner and name."""

    model_config = ConfigDict(frozen=True)

    owner_name: str
    name: str
