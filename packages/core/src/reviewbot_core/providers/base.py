"""Base model provider implementing the Template Method pattern.

Every provider is used the same way:
    complete(prompt) → trace request → _call_api()   ← only this differs per provider
                     → trace response → LLMResponse

Subclasses implement two things only:
  - __init__: validate and store the client / endpoint
  - _call_api: make one raw API call and return the text response

There is deliberately no retry loop: one request, one reply. A failed call
is wrapped in ProviderError and propagates to the orchestrator.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from reviewbot_core.errors import ProviderError
from reviewbot_core.models import LLMResponse
from reviewbot_core.utils.trace import NULL_TRACER, ApiTracer, preview

logger = logging.getLogger(__name__)

_MAX_TOKENS = 4096


class BaseProvider(ABC):
    NAME: str = "LLM"
    MAX_TOKENS: int = _MAX_TOKENS

    tracer: ApiTracer = NULL_TRACER

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def complete(self, prompt: str) -> LLMResponse:
        """Send a single prompt and return the model's reply text."""
        logger.debug("Calling %s API for completion", self.NAME)
        self.tracer.request(f"{self.NAME} API", "POST", {"model": self.model_name, "prompt": preview(prompt)})
        try:
            text = self._call_api(prompt)
        except ProviderError:
            raise
        except Exception as e:
            logger.error("Failed to generate completion from %s: %s", self.NAME, e)
            raise ProviderError(
                self.NAME, f"{self.NAME} API error: {e}", self._status_code(e)
            ) from e
        self.tracer.response(f"{self.NAME} API", "completed", text)
        return LLMResponse(text=text or "")

    @property
    def model_name(self) -> str:
        return getattr(self, "model", "")

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, prompt: str) -> str:
        """Make a single API call and return the raw text response.

        Should raise on failure; complete() turns the exception into a
        ProviderError.
        """

    def _status_code(self, error: Exception) -> int | None:
        return getattr(error, "status_code", None)
