"""
Branch Classifier component.

Turns the branch strings TeamCity reports for a build into a push or pull
request reference. TeamCity may report a full ref (refs/heads/main,
refs/pull/25/merge), a short logical name (main, pull/25/merge), its
"<default>" marker, or nothing at all.
"""

import re
from typing import List, Optional

from teamcity_relay.models.build import RawBuildFacts
from teamcity_relay.models.revision import (
    Classification,
    ClassificationWarning,
    PullRequestRef,
    PushRef,
)
from teamcity_relay.utils.logging import get_logger

logger = get_logger(__name__)

PLACEHOLDER_BRANCH = "mystery-branch"
ASSUMED_DEFAULT_BRANCH = "master"
TEAMCITY_DEFAULT_MARKER = "<default>"

_BRANCH_PREFIXES = ("refs/heads/", "refs/pull/")
_PULL_REF = re.compile(r"^refs/pull/([0-9]+)/")
_NUMBER = re.compile(r"^[0-9]+$")
_MERGE_SUFFIX = "/merge"


def strip_branch_prefixes(ref: str) -> str:
    """Remove leading refs/heads/ or refs/pull/ until neither remains."""
    stripped = ref
    while True:
        for prefix in _BRANCH_PREFIXES:
            if stripped.startswith(prefix):
                stripped = stripped[len(prefix):]
                break
        else:
            return stripped


def is_pull_request_ref(ref: str) -> bool:
    return bool(_PULL_REF.match(ref)) or ref.endswith(_MERGE_SUFFIX)


def _pull_request_number(full_ref: str, stripped: str) -> Optional[int]:
    match = _PULL_REF.match(full_ref)
    if match:
        return int(match.group(1))

    segments = stripped.split("/")
    if segments[0] == "pull" and len(segments) > 1:
        segments = segments[1:]
    if _NUMBER.match(segments[0]):
        return int(segments[0])
    return None


def _usable(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    value = raw.strip()
    if not value or value == TEAMCITY_DEFAULT_MARKER:
        return None
    return value


class BranchClassifier:
    """Classifies a build's branch as a push or a pull request."""

    def classify(self, facts: RawBuildFacts) -> Classification:
        """
        Classify the branch of a build.

        Args:
            facts: Build facts carrying the raw branch strings

        Returns:
            Classification with the revision reference and any warnings
        """
        return self.classify_raw(
            vcs_branch_raw=facts.vcs_branch_raw,
            vcs_root_default_branch_raw=facts.vcs_root_default_branch_raw,
            is_default_branch=facts.is_default_branch,
            build_id=facts.build_id,
        )

    def classify_raw(
        self,
        vcs_branch_raw: Optional[str],
        vcs_root_default_branch_raw: Optional[str] = None,
        is_default_branch: bool = False,
        build_id: Optional[str] = None,
    ) -> Classification:
        warnings: List[ClassificationWarning] = []

        # On the default branch the VCS root setting is authoritative
        if is_default_branch:
            full_ref = _usable(vcs_root_default_branch_raw)
            if full_ref is not None:
                self._warn(warnings, ClassificationWarning.DEFAULT_BRANCH_FROM_VCS_ROOT, build_id)
            else:
                full_ref = ASSUMED_DEFAULT_BRANCH
                self._warn(warnings, ClassificationWarning.DEFAULT_BRANCH_ASSUMED, build_id)
        else:
            full_ref = _usable(vcs_branch_raw)

        if full_ref is None:
            self._warn(warnings, ClassificationWarning.NO_BRANCH_INFORMATION, build_id)
            return Classification(ref=PushRef(branch=PLACEHOLDER_BRANCH), warnings=warnings)

        stripped = strip_branch_prefixes(full_ref)

        if is_pull_request_ref(full_ref):
            number = _pull_request_number(full_ref, stripped)
            if number is None:
                # TODO: decide whether an unreadable PR number should block delivery
                self._warn(warnings, ClassificationWarning.PULL_REQUEST_NUMBER_UNPARSEABLE, build_id)
                number = 0
            return Classification(ref=PullRequestRef(number=number), warnings=warnings)

        if not stripped:
            self._warn(warnings, ClassificationWarning.NO_BRANCH_INFORMATION, build_id)
            return Classification(ref=PushRef(branch=PLACEHOLDER_BRANCH), warnings=warnings)

        return Classification(ref=PushRef(branch=stripped), warnings=warnings)

    @staticmethod
    def _warn(
        warnings: List[ClassificationWarning],
        warning: ClassificationWarning,
        build_id: Optional[str],
    ) -> None:
        warnings.append(warning)
        logger.warning(
            f"Branch classification warning: {warning.value}",
            extra={"build_id": build_id, "warning": warning.value}
        )
