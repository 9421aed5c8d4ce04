from __future__ import annotations

import re
from dataclasses import dataclass

# GitHub is tried first: a GitHub PR URL can never contain "/-/merge_requests/".
_GITHUB_RE = re.compile(r"^https?://[^/]+/([^/]+)/([^/]+)/pull/(\d+)")
# GitLab projects may sit in arbitrarily nested groups.
_GITLAB_RE = re.compile(r"^https?://[^/]+/(.+)/-/merge_requests/(\d+)")

_INVALID_URL = (
    "Invalid merge/pull request URL format. Supported formats:\n"
    "  - GitLab: https://gitlab.com/group/project/-/merge_requests/123\n"
    "  - GitHub: https://github.com/owner/repo/pull/123"
)


@dataclass(frozen=True)
class ParsedUrl:
    platform: str
    project_id: str
    iid: int


def parse_merge_request_url(url: str) -> ParsedUrl:
    """Extract platform, project and merge/pull request number from a web URL.

    Raises ValueError for anything that is not a GitHub pull request or a
    GitLab merge request URL.
    """
    match = _GITHUB_RE.match(url or "")
    if match:
        owner, repo, number = match.groups()
        return ParsedUrl(platform="github", project_id=f"{owner}/{repo}", iid=int(number))

    match = _GITLAB_RE.match(url or "")
    if match:
        project_path, number = match.groups()
        return ParsedUrl(platform="gitlab", project_id=project_path, iid=int(number))

    raise ValueError(_INVALID_URL)
