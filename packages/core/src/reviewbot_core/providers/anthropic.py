from __future__ import annotations

from reviewbot_core.providers.base import BaseProvider
from reviewbot_core.utils.trace import NULL_TRACER, ApiTracer

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicProvider(BaseProvider):
    NAME = "Anthropic"

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, tracer: ApiTracer = NULL_TRACER):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. Install it with: pip install anthropic"
            )
        self.client = Anthropic(api_key=api_key)
        self.model = model
        self.tracer = tracer

    def _call_api(self, prompt: str) -> str:
        # Imported inside the method for the same reason as in __init__;
        # by now the package is known to be installed.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.MAX_TOKENS,
            messages=[{"role": "user", "content": prompt}],
        )
        self.tracer.response(
            "Anthropic API",
            response.stop_reason or "completed",
            {"id": response.id, "model": response.model, "usage": response.usage},
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks)
