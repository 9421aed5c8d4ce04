"""Recover a structured ReviewResult from the model's markdown reply.

The reply comes from a non-deterministic model, so nothing here raises on
bad input: every section that cannot be found resolves to a fixed default
and every comment line that does not have the expected shape is dropped.

The whole grammar is three heading-anchored spans plus one per-line pattern:

    ## Summary             -> text up to the next "##"
    ## Detailed Comments   -> text up to "## Overall Assessment"
    ## Overall Assessment  -> text to the end of the reply

    - [SEVERITY] path:line_range - description
"""

from __future__ import annotations

import re

from reviewbot_core.models import ReviewComment, ReviewResult, Severity

DEFAULT_SUMMARY = "Review completed"
DEFAULT_ASSESSMENT = "No assessment provided"

_SUMMARY_RE = re.compile(r"##\s*Summary\s*\n(.*?)(?=##|\Z)", re.IGNORECASE | re.DOTALL)
_ASSESSMENT_RE = re.compile(r"##\s*Overall Assessment\s*\n(.*)\Z", re.IGNORECASE | re.DOTALL)
_COMMENTS_RE = re.compile(
    r"##\s*Detailed Comments\s*\n(.*?)(?=##\s*Overall Assessment|\Z)",
    re.IGNORECASE | re.DOTALL,
)
# The path group stops at the first ":", so an item whose path contains a
# colon (e.g. "C:\src\app.py") does not match and is skipped. ASCII mode keeps
# \d to 0-9, so a line number in another script is skipped too.
_COMMENT_LINE_RE = re.compile(r"\[(.*?)\]\s*([^:]*):?(\d*-?\d*)\s*-\s*(.*)", re.ASCII)


def normalize_severity(raw: str) -> Severity:
    """Map a free-form severity token onto one of the four Severity buckets."""
    value = (raw or "").lower().strip()
    if "critical" in value or "error" in value:
        return Severity.CRITICAL
    if "warning" in value or "warn" in value:
        return Severity.WARNING
    if "suggestion" in value or "suggest" in value:
        return Severity.SUGGESTION
    return Severity.INFO


def _line_number(line_range: str) -> int | None:
    # "12-18" -> 12; the end of a range is not kept.
    start = line_range.split("-", 1)[0]
    if not start.isdigit():
        return None
    return int(start) or None


def _parse_comment_line(line: str) -> ReviewComment | None:
    match = _COMMENT_LINE_RE.search(line)
    if not match:
        return None
    severity_raw, file_path, line_range, comment = match.groups()
    return ReviewComment(
        file_path=file_path.strip(),
        line_number=_line_number(line_range),
        comment=comment.strip(),
        severity=normalize_severity(severity_raw),
    )


def parse_comments(section: str) -> list[ReviewComment]:
    comments = []
    for line in section.splitlines():
        if not line.strip().startswith("-"):
            continue
        comment = _parse_comment_line(line)
        if comment is not None:
            comments.append(comment)
    return comments


def interpret_review(text: str | None) -> ReviewResult:
    """Parse a review reply into summary, comments and overall assessment."""
    text = text or ""

    summary_match = _SUMMARY_RE.search(text)
    summary = summary_match.group(1).strip() if summary_match else ""

    assessment_match = _ASSESSMENT_RE.search(text)
    assessment = assessment_match.group(1).strip() if assessment_match else ""

    comments_match = _COMMENTS_RE.search(text)
    comments = parse_comments(comments_match.group(1)) if comments_match else []

    return ReviewResult(
        summary=summary or DEFAULT_SUMMARY,
        comments=tuple(comments),
        overall_assessment=assessment or DEFAULT_ASSESSMENT,
    )
