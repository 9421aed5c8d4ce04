"""Turn a change set into the single block of diff text sent to the model."""

from __future__ import annotations

import logging
from typing import Iterable

from reviewbot_core.models import ChangeRecord, ReviewResult

logger = logging.getLogger(__name__)

# Rule line framing each file header so the model can find file boundaries.
_RULE = "=" * 80

# Returned instead of calling the model when nothing in the change set is
# worth reviewing (deleted files, binary files with no patch text).
NO_CHANGES_RESULT = ReviewResult(
    summary="No code changes to review (only deletions or binary files)",
    comments=(),
    overall_assessment="No review needed",
)


def is_reviewable(change: ChangeRecord) -> bool:
    return not change.deleted_file and bool(change.diff)


def _header(change: ChangeRecord) -> str:
    if change.new_file:
        return f"NEW FILE: {change.new_path}"
    if change.renamed_file:
        return f"RENAMED: {change.old_path} -> {change.new_path}"
    return f"FILE: {change.new_path}"


def format_changes(changes: Iterable[ChangeRecord]) -> str:
    """Concatenate every reviewable change into one annotated text block."""
    blocks = []
    for change in changes:
        if not is_reviewable(change):
            continue
        blocks.append(f"\n{_RULE}\n{_header(change)}\n{_RULE}\n{change.diff}\n")
    return "".join(blocks)


def aggregate_changes(
    changes: Iterable[ChangeRecord],
    max_bytes: int,
    log: logging.Logger | None = None,
) -> str:
    """Format the change set and cut it down to at most ``max_bytes`` characters.

    The cut is a hard one: it may land in the middle of a file block or a
    line. Returns an empty string when no change is reviewable.
    """
    if max_bytes <= 0:
        raise ValueError(f"max_bytes must be positive, got {max_bytes}")
    log = log or logger

    text = format_changes(changes)
    if len(text) > max_bytes:
        log.warning("Diff size (%d) exceeds max size (%d). Truncating...", len(text), max_bytes)
        text = text[:max_bytes]
    return text
