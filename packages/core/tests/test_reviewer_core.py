"""Tests for the core review pipeline: review_changes, CodeReviewer and run_review."""

from unittest.mock import MagicMock

import pytest

from reviewbot_core.diff import NO_CHANGES_RESULT
from reviewbot_core.errors import ConfigError, ProviderError, ReviewError
from reviewbot_core.models import ChangeRecord, DiffRefs, LLMResponse, MergeRequestInfo, ReviewResult, Severity
from reviewbot_core.providers.base import BaseProvider
from reviewbot_core.reviewer import (
    CodeReviewer,
    _get_provider,
    _get_vcs_client,
    review_changes,
    run_review,
)
from reviewbot_core.vcs.base import BaseVCSClient

REPLY = """## Summary
Adds login.

## Detailed Comments
- [CRITICAL] src/auth.py:10 - password compared in plain text
- [SUGGESTION] src/auth.py - add docstrings

## Overall Assessment
REQUEST_CHANGES
"""


class StubProvider(BaseProvider):
    """Records every prompt it is given and answers with a canned reply."""

    NAME = "Stub"

    def __init__(self, reply=REPLY, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def _call_api(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


def make_mr(**overrides):
    fields = dict(
        platform="github",
        project_id="owner/repo",
        iid=42,
        title="Add auth",
        description="Adds a login endpoint",
        source_branch="feat/auth",
        target_branch="main",
        web_url="https://github.com/owner/repo/pull/42",
        diff_refs=DiffRefs(base_sha="base", head_sha="head", start_sha="base"),
    )
    fields.update(overrides)
    return MergeRequestInfo(**fields)


def make_change(path="src/auth.py", diff="+def login(): pass", **flags):
    return ChangeRecord(old_path=path, new_path=path, diff=diff, **flags)


def _base_config(**overrides):
    config = {
        "llm_provider": "anthropic",
        "anthropic_api_key": "ant-key",
        "anthropic_model": "claude-test",
        "ollama_endpoint": "http://localhost:11434",
        "ollama_model": "gemma3:4b",
        "github_token": "gh-token",
        "gitlab_token": "gl-token",
        "gitlab_url": "https://gitlab.example.com",
        "github_api_url": None,
        "review_language": "english",
        "review_prompt_template": "default",
        "max_diff_size": 50000,
        "verbose": False,
    }
    config.update(overrides)
    return config


# ---------------------------------------------------------------------------
# review_changes
# ---------------------------------------------------------------------------


class TestReviewChanges:
    def test_returns_interpreted_result(self):
        result = review_changes(StubProvider(), make_mr(), [make_change()])
        assert result.summary == "Adds login."
        assert result.overall_assessment == "REQUEST_CHANGES"
        assert [c.severity for c in result.comments] == [Severity.CRITICAL, Severity.SUGGESTION]

    def test_prompt_contains_diff_and_title(self):
        provider = StubProvider()
        review_changes(provider, make_mr(), [make_change(diff="+unique_marker()")])
        assert len(provider.prompts) == 1
        assert "+unique_marker()" in provider.prompts[0]
        assert "Add auth" in provider.prompts[0]

    def test_no_reviewable_changes_skips_model(self):
        provider = StubProvider()
        changes = [make_change(deleted_file=True), make_change("logo.png", diff="")]
        result = review_changes(provider, make_mr(), changes)
        assert result is NO_CHANGES_RESULT
        assert result.comments == ()
        assert provider.prompts == []

    def test_empty_change_set_skips_model(self):
        provider = StubProvider()
        assert review_changes(provider, make_mr(), []) is NO_CHANGES_RESULT
        assert provider.prompts == []

    def test_diff_truncated_to_max_size(self):
        provider = StubProvider()
        review_changes(provider, make_mr(), [make_change(diff="+" + "x" * 5000)], max_diff_size=200)
        assert "x" * 300 not in provider.prompts[0]

    def test_template_and_language_applied(self):
        provider = StubProvider()
        review_changes(provider, make_mr(), [make_change()], template="security", language="korean")
        assert "security-focused" in provider.prompts[0]
        assert "both Korean and English" in provider.prompts[0]

    def test_provider_failure_wrapped(self):
        provider = StubProvider(error=RuntimeError("connection reset"))
        with pytest.raises(ReviewError, match="Failed to perform AI review") as exc_info:
            review_changes(provider, make_mr(), [make_change()])
        assert isinstance(exc_info.value.__cause__, ProviderError)
        assert "connection reset" in str(exc_info.value)

    def test_security_template_reply_interpreted(self):
        reply = (
            "## Summary\nToken leaks into logs.\n\n"
            "## Detailed Comments\n- [CRITICAL] src/auth.py:12 - token written to debug log\n\n"
            "## Overall Assessment\nREQUEST_CHANGES\n"
        )
        result = review_changes(StubProvider(reply=reply), make_mr(), [make_change()], template="security")
        assert result.summary == "Token leaks into logs."
        assert [(c.file_path, c.line_number) for c in result.comments] == [("src/auth.py", 12)]
        assert result.overall_assessment == "REQUEST_CHANGES"

    def test_unparseable_reply_still_returns_result(self):
        result = review_changes(StubProvider(reply="I cannot review this."), make_mr(), [make_change()])
        assert result.summary == "Review completed"
        assert result.comments == ()

    def test_logs_to_injected_logger(self):
        log = MagicMock()
        review_changes(StubProvider(), make_mr(), [make_change()], log=log)
        assert log.info.called


# ---------------------------------------------------------------------------
# CodeReviewer
# ---------------------------------------------------------------------------


class TestCodeReviewer:
    def test_review_uses_bound_settings(self):
        provider = StubProvider()
        reviewer = CodeReviewer(provider, template="concise", language="japanese", max_diff_size=1000)
        reviewer.review(make_mr(), [make_change()])
        assert "CONCISE" in provider.prompts[0]
        assert "both Japanese and English" in provider.prompts[0]

    def test_from_config(self, mocker):
        provider = StubProvider()
        mocker.patch("reviewbot_core.reviewer._get_provider", return_value=provider)
        reviewer = CodeReviewer.from_config(
            _base_config(review_prompt_template="performance", review_language="chinese", max_diff_size=123)
        )
        assert reviewer.provider is provider
        assert reviewer.template == "performance"
        assert reviewer.language == "chinese"
        assert reviewer.max_diff_size == 123


# ---------------------------------------------------------------------------
# Provider / VCS selection
# ---------------------------------------------------------------------------


class TestGetProvider:
    def test_anthropic(self, mocker):
        mock_cls = mocker.patch("reviewbot_core.providers.anthropic.AnthropicProvider")
        _get_provider(_base_config())
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["api_key"] == "ant-key"
        assert kwargs["model"] == "claude-test"

    def test_anthropic_requires_key(self):
        with pytest.raises(ConfigError, match="Anthropic API key"):
            _get_provider(_base_config(anthropic_api_key=None))

    def test_ollama(self):
        from reviewbot_core.providers.ollama import OllamaProvider

        provider = _get_provider(_base_config(llm_provider="ollama", ollama_endpoint="http://gpu:11434/"))
        assert isinstance(provider, OllamaProvider)
        assert provider.endpoint == "http://gpu:11434"
        assert provider.model == "gemma3:4b"

    def test_ollama_requires_model(self):
        with pytest.raises(ConfigError, match="Ollama endpoint and model"):
            _get_provider(_base_config(llm_provider="ollama", ollama_model=""))

    def test_unknown_provider(self):
        with pytest.raises(ConfigError, match="Unsupported LLM provider"):
            _get_provider(_base_config(llm_provider="openai"))

    def test_verbose_enables_tracer(self, mocker):
        mock_cls = mocker.patch("reviewbot_core.providers.anthropic.AnthropicProvider")
        _get_provider(_base_config(verbose=True))
        assert mock_cls.call_args.kwargs["tracer"].enabled is True


class TestGetVCSClient:
    def test_github(self, mocker):
        mock_cls = mocker.patch("reviewbot_core.vcs.github.GitHubClient")
        _get_vcs_client("github", _base_config(github_api_url="https://ghe.example.com/api/v3"))
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["token"] == "gh-token"
        assert kwargs["base_url"] == "https://ghe.example.com/api/v3"

    def test_gitlab(self):
        from reviewbot_core.vcs.gitlab import GitLabClient

        client = _get_vcs_client("gitlab", _base_config())
        assert isinstance(client, GitLabClient)
        assert client.api_url == "https://gitlab.example.com/api/v4"

    def test_gitlab_default_url(self):
        client = _get_vcs_client("gitlab", _base_config(gitlab_url=None))
        assert client.api_url == "https://gitlab.com/api/v4"

    @pytest.mark.parametrize("platform,key", [("github", "github_token"), ("gitlab", "gitlab_token")])
    def test_token_required(self, platform, key):
        with pytest.raises(ConfigError, match="token is required"):
            _get_vcs_client(platform, _base_config(**{key: None}))

    def test_unknown_platform(self):
        with pytest.raises(ConfigError, match="Unsupported VCS platform: bitbucket. Supported platforms: github, gitlab"):
            _get_vcs_client("bitbucket", _base_config())


# ---------------------------------------------------------------------------
# run_review
# ---------------------------------------------------------------------------


def _mock_vcs(mr=None, changes=None):
    vcs = MagicMock(spec=BaseVCSClient)
    vcs.get_merge_request.return_value = mr or make_mr()
    vcs.get_changes.return_value = changes if changes is not None else [make_change()]
    return vcs


class TestRunReview:
    URL = "https://github.com/owner/repo/pull/42"

    def test_fetches_and_reviews(self):
        vcs = _mock_vcs()
        reviewer = CodeReviewer(StubProvider())

        result = run_review(self.URL, _base_config(), vcs=vcs, reviewer=reviewer)

        vcs.get_merge_request.assert_called_once_with("owner/repo", 42)
        vcs.get_changes.assert_called_once_with("owner/repo", 42)
        assert result.summary == "Adds login."
        vcs.post_comment.assert_not_called()

    def test_gitlab_url_parsed(self):
        vcs = _mock_vcs(mr=make_mr(platform="gitlab", project_id="group/sub/project", iid=7))
        run_review(
            "https://gitlab.com/group/sub/project/-/merge_requests/7",
            _base_config(),
            vcs=vcs,
            reviewer=CodeReviewer(StubProvider()),
        )
        vcs.get_merge_request.assert_called_once_with("group/sub/project", 7)

    def test_post_publishes_summary_and_line_comments(self, mocker):
        mocker.patch("reviewbot_core.publish.get_local_ip_address", return_value="10.0.0.5")
        vcs = _mock_vcs()
        run_review(self.URL, _base_config(), post=True, vcs=vcs, reviewer=CodeReviewer(StubProvider()))

        vcs.post_comment.assert_called_once()
        body = vcs.post_comment.call_args.args[2]
        assert "## 🤖 AI Code Review" in body
        assert "Review generated from IP: 10.0.0.5" in body

        # Only the comment with a line number is anchored.
        vcs.post_line_comment.assert_called_once()
        args = vcs.post_line_comment.call_args.args
        assert args[2:4] == ("src/auth.py", 10)
        assert args[4] == "**[CRITICAL]** password compared in plain text"
        assert args[5] == DiffRefs(base_sha="base", head_sha="head", start_sha="base")

    def test_no_changes_posts_nothing_when_not_asked(self):
        vcs = _mock_vcs(changes=[])
        result = run_review(self.URL, _base_config(), vcs=vcs, reviewer=CodeReviewer(StubProvider()))
        assert result is NO_CHANGES_RESULT
        vcs.post_comment.assert_not_called()

    def test_invalid_url_raises_before_fetch(self):
        vcs = _mock_vcs()
        with pytest.raises(ValueError, match="Invalid merge/pull request URL"):
            run_review("https://example.com/nope", _base_config(), vcs=vcs, reviewer=MagicMock())
        vcs.get_merge_request.assert_not_called()

    def test_review_error_propagates_without_posting(self):
        vcs = _mock_vcs()
        reviewer = CodeReviewer(StubProvider(error=RuntimeError("boom")))
        with pytest.raises(ReviewError):
            run_review(self.URL, _base_config(), post=True, vcs=vcs, reviewer=reviewer)
        vcs.post_comment.assert_not_called()

    def test_builds_collaborators_from_config(self, mocker):
        vcs = _mock_vcs()
        mock_get_vcs = mocker.patch("reviewbot_core.reviewer._get_vcs_client", return_value=vcs)
        mocker.patch("reviewbot_core.reviewer._get_provider", return_value=StubProvider())

        result = run_review(self.URL, _base_config())

        mock_get_vcs.assert_called_once()
        assert mock_get_vcs.call_args.args[0] == "github"
        assert isinstance(result, ReviewResult)

    def test_reviewer_receives_fetched_data(self):
        mr = make_mr()
        changes = [make_change()]
        reviewer = MagicMock()
        reviewer.review.return_value = ReviewResult(summary="ok")
        run_review(self.URL, _base_config(), vcs=_mock_vcs(mr=mr, changes=changes), reviewer=reviewer)
        reviewer.review.assert_called_once_with(mr, changes)


def test_llm_response_is_plain_text():
    assert StubProvider().complete("prompt") == LLMResponse(text=REPLY)
