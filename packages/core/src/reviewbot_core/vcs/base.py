"""Base interface for the code-hosting platforms a review is fetched from and posted to."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from reviewbot_core.models import ChangeRecord, DiffRefs, MergeRequestInfo
from reviewbot_core.utils.trace import NULL_TRACER, ApiTracer

logger = logging.getLogger(__name__)


class BaseVCSClient(ABC):
    PLATFORM: str = ""

    tracer: ApiTracer = NULL_TRACER

    @abstractmethod
    def get_merge_request(self, project_id: str, iid: int) -> MergeRequestInfo:
        """Fetch title, description, branches and diff refs of a merge/pull request."""

    @abstractmethod
    def get_changes(self, project_id: str, iid: int) -> list[ChangeRecord]:
        """Fetch one ChangeRecord per file touched by the merge/pull request."""

    @abstractmethod
    def post_comment(self, project_id: str, iid: int, body: str) -> None:
        """Post a general (not line-anchored) comment."""

    @abstractmethod
    def _create_line_comment(
        self,
        project_id: str,
        iid: int,
        file_path: str,
        line_number: int,
        body: str,
        diff_refs: DiffRefs,
    ) -> None:
        """Post a comment anchored to a line of the new file. Raise on failure."""

    def post_line_comment(
        self,
        project_id: str,
        iid: int,
        file_path: str,
        line_number: int,
        body: str,
        diff_refs: DiffRefs | None = None,
    ) -> None:
        """Post a line comment, degrading to a general comment when that is not possible.

        Line anchoring needs diff refs and a line that is part of the diff;
        when either is missing the platform rejects the request, so the
        comment is posted on the merge request instead, prefixed with its
        location.
        """
        fallback_body = f"**{file_path}:{line_number}**\n\n{body}"
        if diff_refs is None:
            logger.warning("No diff refs available, posting as general comment instead")
            self.post_comment(project_id, iid, fallback_body)
            return

        logger.debug("Posting line comment to %s:%d", file_path, line_number)
        try:
            self._create_line_comment(project_id, iid, file_path, line_number, body, diff_refs)
        except Exception as e:
            logger.error("Failed to post line comment to %s:%d: %s", file_path, line_number, e)
            logger.warning("Falling back to general comment")
            self.post_comment(project_id, iid, fallback_body)
