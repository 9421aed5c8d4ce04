"""VCS token resolution with a platform CLI fallback.

For each platform the environment variable wins; otherwise the token stored
by the platform's own CLI session is reused:

  github  GITHUB_TOKEN, then `gh auth token`
  gitlab  GITLAB_TOKEN, then `glab config get token --host HOST`
"""

from __future__ import annotations

import logging
import os
import subprocess
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_ENV_VARS = {"github": "GITHUB_TOKEN", "gitlab": "GITLAB_TOKEN"}
_CLI_TIMEOUT = 5


def _cli_command(platform: str, gitlab_url: str | None) -> list[str] | None:
    if platform == "github":
        return ["gh", "auth", "token"]
    if platform == "gitlab":
        host = urlparse(gitlab_url or "https://gitlab.com").netloc or "gitlab.com"
        return ["glab", "config", "get", "token", "--host", host]
    return None


def _token_from_cli(command: list[str]) -> str | None:
    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=_CLI_TIMEOUT)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # CLI not installed or hung waiting on a keyring.
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_token(platform: str, gitlab_url: str | None = None) -> str | None:
    """Return a token for ``platform`` ("github" or "gitlab"), or None.

    Never raises: validate_config reports a missing token for the platform
    of the URL being reviewed.
    """
    env_var = _ENV_VARS.get(platform)
    if env_var and os.environ.get(env_var):
        return os.environ[env_var]

    command = _cli_command(platform, gitlab_url)
    if command is None:
        return None
    token = _token_from_cli(command)
    if token:
        logger.debug("Resolved %s token via %s CLI session.", platform, command[0])
    return token
