"""Source-control revision reference models."""

from enum import Enum
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class PushRef(BaseModel):
    """Build triggered by a push to a branch."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["push"] = "push"
    branch: str = Field(min_length=1)


class PullRequestRef(BaseModel):
    """Build triggered by a pull request."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pull_request"] = "pull_request"
    number: int = Field(ge=0)


RevisionRef = Annotated[Union[PushRef, PullRequestRef], Field(discriminator="kind")]


class ClassificationWarning(str, Enum):
    """Non-fatal problems found while classifying a branch."""

    DEFAULT_BRANCH_FROM_VCS_ROOT = "default_branch_from_vcs_root"
    DEFAULT_BRANCH_ASSUMED = "default_branch_assumed"
    NO_BRANCH_INFORMATION = "no_branch_information"
    PULL_REQUEST_NUMBER_UNPARSEABLE = "pull_request_number_unparseable"


# Warnings for which the reference holds a placeholder rather than real data
DEGRADING_WARNINGS = frozenset({
    ClassificationWarning.NO_BRANCH_INFORMATION,
    ClassificationWarning.PULL_REQUEST_NUMBER_UNPARSEABLE,
})


class Classification(BaseModel):
    """Revision reference plus the warnings raised while deriving it."""

    model_config = ConfigDict(frozen=True)

    ref: RevisionRef
    warnings: List[ClassificationWarning] = []

    @property
    def degraded(self) -> bool:
        """True when a placeholder value stands in for unreadable metadata."""
        return any(w in DEGRADING_WARNINGS for w in self.warnings)
