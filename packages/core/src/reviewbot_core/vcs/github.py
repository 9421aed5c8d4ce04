from __future__ import annotations

import logging

import requests
from github import Github, GithubException

from reviewbot_core.errors import VCSError
from reviewbot_core.models import ChangeRecord, DiffRefs, MergeRequestInfo
from reviewbot_core.utils.trace import NULL_TRACER, ApiTracer, preview
from reviewbot_core.vcs.base import BaseVCSClient

logger = logging.getLogger(__name__)


class GitHubClient(BaseVCSClient):
    """Pull requests on github.com (or GitHub Enterprise via ``base_url``).

    ``project_id`` is the ``owner/repo`` full name.
    """

    PLATFORM = "github"

    def __init__(self, token: str, base_url: str | None = None, tracer: ApiTracer = NULL_TRACER, gh=None):
        if gh is not None:
            self._gh = gh
        elif base_url:
            self._gh = Github(token, base_url=base_url)
        else:
            self._gh = Github(token)
        self.tracer = tracer

    def _get_pull(self, project_id: str, iid: int):
        return self._gh.get_repo(project_id).get_pull(iid)

    def get_merge_request(self, project_id: str, iid: int) -> MergeRequestInfo:
        logger.debug("Fetching PR %d from %s", iid, project_id)
        self.tracer.request("GitHub API - pulls.get", "GET", {"repo": project_id, "pull_number": iid})
        try:
            pr = self._get_pull(project_id, iid)
        except (GithubException, requests.RequestException) as e:
            logger.error("Failed to fetch pull request: %s", e)
            raise VCSError(f"Failed to fetch pull request: {e}") from e

        self.tracer.response(
            "GitHub API - pulls.get",
            200,
            {"number": pr.number, "title": pr.title, "state": pr.state, "head": pr.head.ref, "base": pr.base.ref},
        )
        return MergeRequestInfo(
            platform=self.PLATFORM,
            project_id=project_id,
            iid=pr.number,
            title=pr.title,
            description=pr.body or "",
            source_branch=pr.head.ref,
            target_branch=pr.base.ref,
            web_url=pr.html_url,
            diff_refs=DiffRefs(base_sha=pr.base.sha, head_sha=pr.head.sha, start_sha=pr.base.sha),
        )

    def get_changes(self, project_id: str, iid: int) -> list[ChangeRecord]:
        logger.debug("Fetching changes for PR %d", iid)
        self.tracer.request("GitHub API - pulls.listFiles", "GET", {"repo": project_id, "pull_number": iid})
        try:
            files = list(self._get_pull(project_id, iid).get_files())
        except (GithubException, requests.RequestException) as e:
            logger.error("Failed to fetch pull request changes: %s", e)
            raise VCSError(f"Failed to fetch pull request changes: {e}") from e

        self.tracer.response(
            "GitHub API - pulls.listFiles",
            200,
            {"files_count": len(files), "files": [{"filename": f.filename, "status": f.status} for f in files]},
        )
        return [
            ChangeRecord(
                old_path=f.previous_filename or f.filename,
                new_path=f.filename,
                diff=f.patch or "",
                new_file=f.status == "added",
                deleted_file=f.status == "removed",
                renamed_file=f.status == "renamed",
            )
            for f in files
        ]

    def post_comment(self, project_id: str, iid: int, body: str) -> None:
        logger.debug("Posting general comment to PR %d", iid)
        self.tracer.request(
            "GitHub API - issues.createComment", "POST", {"repo": project_id, "issue_number": iid, "body": preview(body)}
        )
        try:
            self._get_pull(project_id, iid).create_issue_comment(body)
        except (GithubException, requests.RequestException) as e:
            logger.error("Failed to post comment: %s", e)
            raise VCSError(f"Failed to post comment: {e}") from e
        self.tracer.response("GitHub API - issues.createComment", 201, {"status": "created"})
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
        repo = self._gh.get_repo(project_id)
        pr = repo.get_pull(iid)
        self.tracer.request(
            "GitHub API - pulls.createReviewComment",
            "POST",
            {
                "repo": project_id,
                "pull_number": iid,
                "commit_id": diff_refs.head_sha,
                "path": file_path,
                "line": line_number,
                "side": "RIGHT",
                "body": preview(body),
            },
        )
        pr.create_review_comment(
            body=body,
            commit=repo.get_commit(diff_refs.head_sha),
            path=file_path,
            line=line_number,
            side="RIGHT",
        )
        self.tracer.response("GitHub API - pulls.createReviewComment", 201, {"status": "created"})
        logger.debug("Line comment posted to %s:%d", file_path, line_number)
