"""Verbose request/response tracing for the model and VCS API calls.

Enabled with ``reviewbot --verbose``. Each payload is printed between 80-char
rules so long prompts and replies stay readable in a terminal. Tracing is
purely diagnostic; nothing reads its output.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console

_RULE = "=" * 80
# Comment bodies and prompts are clipped in traces; the full text is in the
# payload that was actually sent.
_PREVIEW_CHARS = 100


def preview(text: str, limit: int = _PREVIEW_CHARS) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class ApiTracer:
    def __init__(self, enabled: bool = False, console: Console | None = None):
        self.enabled = enabled
        self.console = console or Console(stderr=True, highlight=False)

    def _dump(self, data: Any) -> None:
        if data is None:
            return
        if isinstance(data, str):
            self.console.print(data, markup=False)
        else:
            self.console.print(json.dumps(data, indent=2, default=str, ensure_ascii=False), markup=False)

    def request(self, endpoint: str, method: str, payload: Any = None) -> None:
        if not self.enabled:
            return
        self.console.print(f"\n{_RULE}", markup=False)
        self.console.print(f"[VERBOSE] API REQUEST: {method} {endpoint}", markup=False)
        self.console.print(_RULE, markup=False)
        self._dump(payload)
        self.console.print(f"{_RULE}\n", markup=False)

    def response(self, endpoint: str, status: int | str, payload: Any = None) -> None:
        if not self.enabled:
            return
        self.console.print(f"\n{_RULE}", markup=False)
        self.console.print(f"[VERBOSE] API RESPONSE: {endpoint} (Status: {status})", markup=False)
        self.console.print(_RULE, markup=False)
        self._dump(payload)
        self.console.print(f"{_RULE}\n", markup=False)


# Shared disabled tracer used when a client is built without one.
NULL_TRACER = ApiTracer(enabled=False)
