"""Exception hierarchy for reviewbot.

Callers that only want to report "the review failed" can catch
ReviewBotError; the subclasses say which step failed.
"""

from __future__ import annotations


class ReviewBotError(Exception):
    """Base class for every error raised deliberately by reviewbot."""


class ConfigError(ReviewBotError):
    """Missing credentials, unknown provider/platform or an invalid setting."""


class VCSError(ReviewBotError):
    """A GitHub or GitLab request failed."""


class ProviderError(ReviewBotError):
    """The model provider could not produce a completion."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ReviewError(ReviewBotError):
    """The review could not be completed; wraps the underlying cause."""
