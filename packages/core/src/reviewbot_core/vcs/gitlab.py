from __future__ import annotations

import logging
from urllib.parse import quote

import requests

from reviewbot_core.errors import VCSError
from reviewbot_core.models import ChangeRecord, DiffRefs, MergeRequestInfo
from reviewbot_core.utils.trace import NULL_TRACER, ApiTracer, preview
from reviewbot_core.vcs.base import BaseVCSClient

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://gitlab.com"


class GitLabClient(BaseVCSClient):
    """Merge requests on gitlab.com or a self-hosted GitLab (REST API v4).

    ``project_id`` is either the numeric id or the ``group/subgroup/project``
    path; paths are URL-encoded as the API requires.
    """

    PLATFORM = "gitlab"
    TIMEOUT = 30
    PER_PAGE = 100

    def __init__(
        self,
        token: str,
        url: str = DEFAULT_URL,
        tracer: ApiTracer = NULL_TRACER,
        session: requests.Session | None = None,
    ):
        self.api_url = f"{url.rstrip('/')}/api/v4"
        self.tracer = tracer
        self.session = session or requests.Session()
        self.session.headers.update({"PRIVATE-TOKEN": token})

    def _mr_url(self, project_id: str, iid: int) -> str:
        return f"{self.api_url}/projects/{quote(str(project_id), safe='')}/merge_requests/{iid}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        response = self.session.request(method, url, timeout=self.TIMEOUT, **kwargs)
        response.raise_for_status()
        return response

    def get_merge_request(self, project_id: str, iid: int) -> MergeRequestInfo:
        logger.debug("Fetching MR %d from project %s", iid, project_id)
        self.tracer.request("GitLab API - MergeRequests.show", "GET", {"projectId": project_id, "mrIid": iid})
        try:
            mr = self._request("GET", self._mr_url(project_id, iid)).json()
        except requests.RequestException as e:
            logger.error("Failed to fetch merge request: %s", e)
            raise VCSError(f"Failed to fetch merge request: {e}") from e

        self.tracer.response(
            "GitLab API - MergeRequests.show",
            200,
            {
                "iid": mr.get("iid"),
                "title": mr.get("title"),
                "state": mr.get("state"),
                "source_branch": mr.get("source_branch"),
                "target_branch": mr.get("target_branch"),
            },
        )
        refs = mr.get("diff_refs")
        diff_refs = (
            DiffRefs(base_sha=refs["base_sha"], head_sha=refs["head_sha"], start_sha=refs["start_sha"])
            if refs
            else None
        )
        return MergeRequestInfo(
            platform=self.PLATFORM,
            # Keep the caller's identifier (usually the path) so later calls hit the same project.
            project_id=str(project_id),
            iid=mr["iid"],
            title=mr["title"],
            description=mr.get("description") or "",
            source_branch=mr["source_branch"],
            target_branch=mr["target_branch"],
            web_url=mr.get("web_url", ""),
            diff_refs=diff_refs,
        )

    def get_changes(self, project_id: str, iid: int) -> list[ChangeRecord]:
        logger.debug("Fetching changes for MR %d", iid)
        self.tracer.request("GitLab API - MergeRequests.allDiffs", "GET", {"projectId": project_id, "mrIid": iid})
        diffs: list[dict] = []
        page: str | None = "1"
        try:
            while page:
                response = self._request(
                    "GET",
                    f"{self._mr_url(project_id, iid)}/diffs",
                    params={"page": page, "per_page": self.PER_PAGE},
                )
                diffs.extend(response.json())
                page = response.headers.get("X-Next-Page") or None
        except requests.RequestException as e:
            logger.error("Failed to fetch merge request changes: %s", e)
            raise VCSError(f"Failed to fetch merge request changes: {e}") from e

        self.tracer.response(
            "GitLab API - MergeRequests.allDiffs",
            200,
            {
                "files_count": len(diffs),
                "files": [{"path": d.get("new_path"), "new_file": d.get("new_file")} for d in diffs],
            },
        )
        return [
            ChangeRecord(
                old_path=d.get("old_path") or d.get("new_path", ""),
                new_path=d.get("new_path") or d.get("old_path", ""),
                diff=d.get("diff") or "",
                new_file=bool(d.get("new_file")),
                deleted_file=bool(d.get("deleted_file")),
                renamed_file=bool(d.get("renamed_file")),
            )
            for d in diffs
        ]

    def post_comment(self, project_id: str, iid: int, body: str) -> None:
        logger.debug("Posting general comment to MR %d", iid)
        self.tracer.request(
            "GitLab API - MergeRequestNotes.create", "POST", {"projectId": project_id, "mrIid": iid, "body": preview(body)}
        )
        try:
            self._request("POST", f"{self._mr_url(project_id, iid)}/notes", json={"body": body})
        except requests.RequestException as e:
            logger.error("Failed to post comment: %s", e)
            raise VCSError(f"Failed to post comment: {e}") from e
        self.tracer.response("GitLab API - MergeRequestNotes.create", 201, {"status": "created"})
        logger.info("General comment posted successfully")

    def _create_line_comment(
        self,
        project_id: str,
        iid: int,
        file_path: str,
        line_number: int,
        body: str,
        diff_refs: DiffRefs,
    ) -> None:
        position = {
            "base_sha": diff_refs.base_sha,
            "head_sha": diff_refs.head_sha,
            "start_sha": diff_refs.start_sha,
            "position_type": "text",
            "new_path": file_path,
            "old_path": file_path,
            "new_line": line_number,
        }
        self.tracer.request(
            "GitLab API - MergeRequestDiscussions.create",
            "POST",
            {"projectId": project_id, "mrIid": iid, "body": preview(body), "position": position},
        )
        self._request(
            "POST",
            f"{self._mr_url(project_id, iid)}/discussions",
            json={"body": body, "position": position},
        )
        self.tracer.response("GitLab API - MergeRequestDiscussions.create", 201, {"status": "created"})
        logger.debug("Line comment posted to %s:%d", file_path, line_number)
