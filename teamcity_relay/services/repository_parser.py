"""Repository URL parsing."""

import re
from urllib.parse import urlsplit

from teamcity_relay.models.build import Repository
from teamcity_relay.models.error import RepositoryParseError

# user@host:owner/repo, where the host part holds no slash
_SCP_URL = re.compile(r"^(?:[^@/]+@)?[^@/:]+:(?P<path>.*)$")
_GIT_SUFFIX = ".git"


def _url_path(raw_url: str) -> str:
    if "://" in raw_url:
        try:
            return urlsplit(raw_url).path
        except ValueError as e:
            raise RepositoryParseError(f"Malformed repository URL: {raw_url!r}") from e

    match = _SCP_URL.match(raw_url)
    if match:
        return match.group("path")
    return raw_url


def parse_repository(raw_url: str) -> Repository:
    """
    Parse owner and repository name from a VCS root URL.

    Handles https://host/owner/repo.git as well as git@host:owner/repo.git.
    Only the path counts: scheme, credentials, host and port are ignored.

    Raises:
        RepositoryParseError: If the URL path has fewer than two segments
    """
    raw_url = raw_url.strip()
    segments = [s for s in _url_path(raw_url).split("/") if s]
    if len(segments) < 2:
        raise RepositoryParseError(f"Cannot find owner and name in repository URL: {raw_url!r}")

    owner_name, name = segments[-2], segments[-1]
    if name.endswith(_GIT_SUFFIX):
        name = name[:-len(_GIT_SUFFIX)]
    if not name:
        raise RepositoryParseError(f"Empty repository name in URL: {raw_url!r}")

    return Repository(owner_name=owner_name, name=name)
