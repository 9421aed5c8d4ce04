"""Render a ReviewResult as markdown and post it back to the merge request."""

from __future__ import annotations

import logging
import socket
from datetime import datetime, timezone

from reviewbot_core.models import MergeRequestInfo, ReviewResult
from reviewbot_core.vcs.base import BaseVCSClient

logger = logging.getLogger(__name__)


def get_local_ip_address() -> str:
    """Return the first non-loopback IPv4 address of this host, or 127.0.0.1."""
    try:
        for info in socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET):
            address = info[4][0]
            if not address.startswith("127."):
                return address
    except OSError:
        pass
    return "127.0.0.1"


def get_review_metadata() -> str:
    timestamp = datetime.now(timezone.utc).isoformat()
    return f"Review generated from IP: {get_local_ip_address()} at {timestamp}"


def format_review_comment(result: ReviewResult, metadata: str | None = None) -> str:
    """Build the general comment posted on the merge request."""
    lines = ["## 🤖 AI Code Review\n", "### Summary", result.summary, ""]

    if result.comments:
        lines.append("### Detailed Comments")
        for c in result.comments:
            lines.append(f"- **[{c.severity.label.upper()}]** `{c.location}` - {c.comment}")
        lines.append("")

    lines.extend(["### Overall Assessment", result.overall_assessment])

    if metadata:
        lines.extend(["", "---", f"_{metadata}_"])

    return "\n".join(lines)


def publish_review(
    vcs: BaseVCSClient,
    mr_info: MergeRequestInfo,
    result: ReviewResult,
    metadata: str | None = None,
    log: logging.Logger | None = None,
) -> int:
    """Post the review summary and one line comment per located finding.

    Returns the number of line comments posted. Comments without a line
    number are already part of the summary comment.
    """
    log = log or logger
    log.info("Posting review to %s", mr_info.web_url or f"{mr_info.project_id}!{mr_info.iid}")
    vcs.post_comment(mr_info.project_id, mr_info.iid, format_review_comment(result, metadata))

    posted = 0
    for c in result.comments:
        if not c.line_number:
            continue
        body = f"**[{c.severity.label.upper()}]** {c.comment}"
        vcs.post_line_comment(mr_info.project_id, mr_info.iid, c.file_path, c.line_number, body, mr_info.diff_refs)
        posted += 1

    log.info("Review posted: 1 summary comment and %d line comment(s)", posted)
    return posted
