"""Data types passed between the VCS clients, the review engine and the CLI.

Everything here is a frozen dataclass: a ReviewResult is produced once by the
interpreter and then only read (rendered, posted, serialised), so nothing
downstream should be able to mutate it in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class Severity(IntEnum):
    """Urgency of a single review comment, ordered from least to most urgent."""

    INFO = 0
    SUGGESTION = 1
    WARNING = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class DiffRefs:
    """Commit SHAs that anchor line comments to a specific diff version."""

    base_sha: str
    head_sha: str
    start_sha: str


@dataclass(frozen=True)
class MergeRequestInfo:
    platform: str  # "github" | "gitlab"
    project_id: str
    iid: int
    title: str
    description: str
    source_branch: str
    target_branch: str
    web_url: str = ""
    diff_refs: DiffRefs | None = None


@dataclass(frozen=True)
class ChangeRecord:
    """One file's entry in a change set."""

    old_path: str
    new_path: str
    diff: str
    new_file: bool = False
    deleted_file: bool = False
    renamed_file: bool = False


@dataclass(frozen=True)
class ReviewComment:
    file_path: str
    line_number: int | None
    comment: str
    severity: Severity = Severity.INFO

    @property
    def location(self) -> str:
        if self.line_number:
            return f"{self.file_path}:{self.line_number}"
        return self.file_path

    def to_dict(self) -> dict:
        return {
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "comment": self.comment,
            "severity": self.severity.label,
        }


@dataclass(frozen=True)
class ReviewResult:
    summary: str
    comments: tuple[ReviewComment, ...] = field(default_factory=tuple)
    overall_assessment: str = ""

    def to_dict(self) -> dict:
        """Return the JSON shape emitted by ``reviewbot review --format json``."""
        return {
            "summary": self.summary,
            "comments": [c.to_dict() for c in self.comments],
            "overallAssessment": self.overall_assessment,
        }


@dataclass(frozen=True)
class LLMResponse:
    text: str
