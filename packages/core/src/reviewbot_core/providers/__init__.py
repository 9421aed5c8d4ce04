"""Model-completion providers.

Provider selection happens in reviewbot_core.reviewer._get_provider so the
SDK for an unused provider is never imported.
"""

SUPPORTED_PROVIDERS = ("anthropic", "ollama")
