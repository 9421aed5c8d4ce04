import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from reviewbot_core.errors import ConfigError
from reviewbot_core.prompts import LANGUAGES
from reviewbot_core.providers import SUPPORTED_PROVIDERS
from reviewbot_core.providers.anthropic import DEFAULT_MODEL as DEFAULT_ANTHROPIC_MODEL
from reviewbot_core.providers.ollama import DEFAULT_ENDPOINT as DEFAULT_OLLAMA_ENDPOINT
from reviewbot_core.providers.ollama import DEFAULT_MODEL as DEFAULT_OLLAMA_MODEL
from reviewbot_core.vcs.gitlab import DEFAULT_URL as DEFAULT_GITLAB_URL

DEFAULT_CONFIG: dict = {
    "llm_provider": "anthropic",
    "anthropic_model": DEFAULT_ANTHROPIC_MODEL,
    "ollama_endpoint": DEFAULT_OLLAMA_ENDPOINT,
    "ollama_model": DEFAULT_OLLAMA_MODEL,
    "gitlab_url": DEFAULT_GITLAB_URL,
    "github_api_url": None,  # None = api.github.com; set for GitHub Enterprise
    "review_language": "english",
    "review_prompt_template": "default",
    "max_diff_size": 50000,
    "verbose": False,
}

# Environment variables that override settings (not credentials).
_ENV_SETTINGS = {
    "LLM_PROVIDER": "llm_provider",
    "ANTHROPIC_MODEL": "anthropic_model",
    "OLLAMA_ENDPOINT": "ollama_endpoint",
    "OLLAMA_MODEL": "ollama_model",
    "GITLAB_URL": "gitlab_url",
    "GITHUB_API_URL": "github_api_url",
    "REVIEW_LANGUAGE": "review_language",
    "REVIEW_PROMPT_TEMPLATE": "review_prompt_template",
    "MAX_DIFF_SIZE": "max_diff_size",
}


def load_config(
    config_path: str = ".reviewbot.yml",
    cli_overrides: Optional[dict] = None,
    load_env: bool = True,
) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .reviewbot.yml in the current directory
      3. Environment variables (a .env file in the current directory is loaded first)
      4. CLI argument overrides
    """
    if load_env:
        load_dotenv(find_dotenv(usecwd=True))

    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    for env_var, key in _ENV_SETTINGS.items():
        value = os.environ.get(env_var)
        if value:
            config[key] = value

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    try:
        config["max_diff_size"] = int(config["max_diff_size"])
    except (TypeError, ValueError):
        raise ConfigError(f"max_diff_size must be an integer, got {config['max_diff_size']!r}")
    config["llm_provider"] = str(config["llm_provider"]).lower()
    config["review_language"] = str(config["review_language"]).lower()

    # Resolve credentials from environment variables
    config["gitlab_token"] = os.environ.get("GITLAB_TOKEN")
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

    return config


def validate_config(config: dict, platform: Optional[str] = None) -> None:
    """Raise ConfigError if the configuration cannot run a review.

    ``platform`` is the platform of the merge request about to be reviewed;
    when given, its token specifically must be present.
    """
    if not config.get("gitlab_token") and not config.get("github_token"):
        raise ConfigError("At least one of GITLAB_TOKEN or GITHUB_TOKEN environment variable is required")
    if platform == "gitlab" and not config.get("gitlab_token"):
        raise ConfigError("GITLAB_TOKEN environment variable is required to review GitLab merge requests")
    if platform == "github" and not config.get("github_token"):
        raise ConfigError("GITHUB_TOKEN environment variable is required to review GitHub pull requests")

    provider = config.get("llm_provider")
    if provider not in SUPPORTED_PROVIDERS:
        raise ConfigError(
            f"Unsupported LLM provider: {provider}. Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
        )
    if provider == "anthropic" and not config.get("anthropic_api_key"):
        raise ConfigError("ANTHROPIC_API_KEY environment variable is required when using Anthropic provider")
    if provider == "ollama" and not (config.get("ollama_endpoint") and config.get("ollama_model")):
        raise ConfigError("Ollama endpoint and model are required for Ollama provider")

    language = config.get("review_language")
    if language not in LANGUAGES:
        raise ConfigError(f"Unsupported review language: {language}. Supported languages: {', '.join(LANGUAGES)}")

    if config.get("max_diff_size", 0) <= 0:
        raise ConfigError("max_diff_size must be a positive integer")
