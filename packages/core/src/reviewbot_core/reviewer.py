"""Core review orchestration."""

from __future__ import annotations

import logging
from typing import Sequence

from reviewbot_core.diff import NO_CHANGES_RESULT, aggregate_changes, is_reviewable
from reviewbot_core.errors import ConfigError, ReviewError
from reviewbot_core.interpreter import interpret_review
from reviewbot_core.models import ChangeRecord, MergeRequestInfo, ReviewResult
from reviewbot_core.prompts import DEFAULT_LANGUAGE, DEFAULT_TEMPLATE, get_prompt_template
from reviewbot_core.providers.base import BaseProvider
from reviewbot_core.publish import get_review_metadata, publish_review
from reviewbot_core.utils.trace import ApiTracer
from reviewbot_core.utils.url import parse_merge_request_url
from reviewbot_core.vcs import SUPPORTED_PLATFORMS
from reviewbot_core.vcs.base import BaseVCSClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIFF_SIZE = 50000


def _get_provider(config: dict, tracer: ApiTracer | None = None) -> BaseProvider:
    tracer = tracer or ApiTracer(enabled=bool(config.get("verbose")))
    provider = config.get("llm_provider", "anthropic")
    if provider == "anthropic":
        from reviewbot_core.providers.anthropic import DEFAULT_MODEL, AnthropicProvider

        if not config.get("anthropic_api_key"):
            raise ConfigError("Anthropic API key is required for Anthropic provider")
        return AnthropicProvider(
            api_key=config["anthropic_api_key"],
            model=config.get("anthropic_model") or DEFAULT_MODEL,
            tracer=tracer,
        )
    if provider == "ollama":
        from reviewbot_core.providers.ollama import OllamaProvider

        if not config.get("ollama_endpoint") or not config.get("ollama_model"):
            raise ConfigError("Ollama endpoint and model are required for Ollama provider")
        return OllamaProvider(endpoint=config["ollama_endpoint"], model=config["ollama_model"], tracer=tracer)
    raise ConfigError(f"Unsupported LLM provider: {provider!r}. Choose 'anthropic' or 'ollama'.")


def _get_vcs_client(platform: str, config: dict, tracer: ApiTracer | None = None) -> BaseVCSClient:
    tracer = tracer or ApiTracer(enabled=bool(config.get("verbose")))
    if platform == "github":
        from reviewbot_core.vcs.github import GitHubClient

        if not config.get("github_token"):
            raise ConfigError("GitHub token is required to review GitHub pull requests")
        return GitHubClient(token=config["github_token"], base_url=config.get("github_api_url"), tracer=tracer)
    if platform == "gitlab":
        from reviewbot_core.vcs.gitlab import DEFAULT_URL, GitLabClient

        if not config.get("gitlab_token"):
            raise ConfigError("GitLab token is required to review GitLab merge requests")
        return GitLabClient(token=config["gitlab_token"], url=config.get("gitlab_url") or DEFAULT_URL, tracer=tracer)
    raise ConfigError(
        f"Unsupported VCS platform: {platform}. Supported platforms: {', '.join(SUPPORTED_PLATFORMS)}"
    )


def review_changes(
    provider: BaseProvider,
    mr_info: MergeRequestInfo,
    changes: Sequence[ChangeRecord],
    template: str = DEFAULT_TEMPLATE,
    language: str = DEFAULT_LANGUAGE,
    max_diff_size: int = DEFAULT_MAX_DIFF_SIZE,
    log: logging.Logger | None = None,
) -> ReviewResult:
    """Review a change set with a single model call and return the structured result.

    When no change is reviewable the model is not called at all and
    NO_CHANGES_RESULT is returned. A failed model call fails the whole
    review: it is re-raised as ReviewError, never partially recovered.
    """
    log = log or logger
    log.info("Starting AI-powered code review...")

    if not any(is_reviewable(c) for c in changes):
        log.info("No reviewable changes (only deletions or binary files); skipping model call")
        return NO_CHANGES_RESULT

    try:
        diff_content = aggregate_changes(changes, max_diff_size, log)
        prompt = get_prompt_template(template, log).render(mr_info, diff_content, language)

        log.debug("Calling LLM API for code review")
        response = provider.complete(prompt)
    except Exception as e:
        log.error("Failed to perform AI review: %s", e)
        raise ReviewError(f"Failed to perform AI review: {e}") from e

    result = interpret_review(response.text)
    log.info("AI review completed successfully")
    return result


class CodeReviewer:
    """A provider bound to the review settings from configuration."""

    def __init__(
        self,
        provider: BaseProvider,
        template: str = DEFAULT_TEMPLATE,
        language: str = DEFAULT_LANGUAGE,
        max_diff_size: int = DEFAULT_MAX_DIFF_SIZE,
        log: logging.Logger | None = None,
    ):
        self.provider = provider
        self.template = template
        self.language = language
        self.max_diff_size = max_diff_size
        self.log = log or logger

    @classmethod
    def from_config(cls, config: dict, log: logging.Logger | None = None) -> "CodeReviewer":
        return cls(
            provider=_get_provider(config),
            template=config.get("review_prompt_template") or DEFAULT_TEMPLATE,
            language=config.get("review_language") or DEFAULT_LANGUAGE,
            max_diff_size=config.get("max_diff_size") or DEFAULT_MAX_DIFF_SIZE,
            log=log,
        )

    def review(self, mr_info: MergeRequestInfo, changes: Sequence[ChangeRecord]) -> ReviewResult:
        return review_changes(
            self.provider,
            mr_info,
            changes,
            template=self.template,
            language=self.language,
            max_diff_size=self.max_diff_size,
            log=self.log,
        )


def run_review(
    url: str,
    config: dict,
    post: bool = False,
    log: logging.Logger | None = None,
    vcs: BaseVCSClient | None = None,
    reviewer: CodeReviewer | None = None,
) -> ReviewResult:
    """Run the full pipeline for one merge/pull request URL.

    Fetches the merge request and its changes, reviews them, and when
    ``post`` is set publishes the result back to the platform. ``vcs`` and
    ``reviewer`` default to the ones selected by configuration.
    """
    log = log or logger
    parsed = parse_merge_request_url(url)
    log.info("Reviewing %s %s #%d", parsed.platform, parsed.project_id, parsed.iid)

    vcs = vcs or _get_vcs_client(parsed.platform, config)
    reviewer = reviewer or CodeReviewer.from_config(config, log)

    mr_info = vcs.get_merge_request(parsed.project_id, parsed.iid)
    changes = vcs.get_changes(parsed.project_id, parsed.iid)
    log.info("Fetched %d changed file(s) for %r", len(changes), mr_info.title)

    result = reviewer.review(mr_info, changes)

    if post:
        publish_review(vcs, mr_info, result, metadata=get_review_metadata(), log=log)
    return result
