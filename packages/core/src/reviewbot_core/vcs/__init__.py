"""Code-hosting platform clients (GitHub, GitLab)."""

SUPPORTED_PLATFORMS = ("github", "gitlab")
