from __future__ import annotations

import requests

from reviewbot_core.errors import ProviderError
from reviewbot_core.providers.base import BaseProvider
from reviewbot_core.utils.trace import NULL_TRACER, ApiTracer

DEFAULT_ENDPOINT = "http://localhost:11434"
DEFAULT_MODEL = "gemma3:4b"


class OllamaProvider(BaseProvider):
    NAME = "Ollama"
    # Local models on modest hardware can take minutes on a large diff.
    TIMEOUT = 300

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        tracer: ApiTracer = NULL_TRACER,
        session: requests.Session | None = None,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.model = model
        self.tracer = tracer
        self.session = session or requests.Session()

    def _call_api(self, prompt: str) -> str:
        response = self.session.post(
            f"{self.endpoint}/api/generate",
            json={"model": self.model, "prompt": prompt, "stream": False},
            timeout=self.TIMEOUT,
        )
        if not response.ok:
            raise ProviderError(
                self.NAME,
                f"Ollama API returned status {response.status_code}: {response.reason}",
                response.status_code,
            )
        data = response.json()
        return data.get("response", "")
