"""review command — run an AI review on a merge/pull request."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.markup import escape

from reviewbot_core.config import load_config, validate_config
from reviewbot_core.errors import ConfigError, ReviewBotError
from reviewbot_core.models import ReviewResult, Severity
from reviewbot_core.prompts import LANGUAGES
from reviewbot_core.providers import SUPPORTED_PROVIDERS
from reviewbot_core.publish import get_review_metadata
from reviewbot_core.reviewer import run_review
from reviewbot_core.utils.url import parse_merge_request_url
from reviewbot_cli.auth import resolve_token

console = Console()

_RULE_WIDTH = 80
_SEVERITY_COLOR = {
    Severity.CRITICAL: "red",
    Severity.WARNING: "yellow",
    Severity.SUGGESTION: "blue",
    Severity.INFO: "dim",
}


def print_review(result: ReviewResult, posted: bool = False) -> None:
    """Print a review to the terminal as plain sections."""
    console.print("\n" + "=" * _RULE_WIDTH)
    console.print("[bold]AI CODE REVIEW RESULTS[/bold]")
    console.print("=" * _RULE_WIDTH + "\n")

    console.print("[bold]SUMMARY:[/bold]")
    console.print(result.summary, markup=False)
    console.print()

    if result.comments:
        console.print("[bold]DETAILED FEEDBACK:[/bold]")
        console.print("-" * _RULE_WIDTH)
        for c in result.comments:
            color = _SEVERITY_COLOR.get(c.severity, "white")
            tag = escape(f"[{c.severity.label.upper()}]")
            console.print(f"[{color}]{tag}[/{color}] [bold cyan]{escape(c.location)}[/bold cyan]")
            console.print(f"  {c.comment}", markup=False)
            console.print()

    console.print("[bold]OVERALL ASSESSMENT:[/bold]")
    console.print(result.overall_assessment, markup=False)
    console.print("\n" + "-" * _RULE_WIDTH)
    console.print(f"[dim]{get_review_metadata()}[/dim]")
    console.print("=" * _RULE_WIDTH + "\n")

    if posted:
        console.print("[green]Review has been posted as a comment on the merge request[/green]")


@click.command("review")
@click.option("--url", "-u", required=True, help="GitHub pull request or GitLab merge request URL.")
@click.option("--post", "-p", is_flag=True, help="Post the review as comments on the merge request.")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--template",
    "-t",
    default=None,
    help="Prompt template (default, concise, security, performance). Overrides config file.",
)
@click.option(
    "--language",
    "-l",
    type=click.Choice(list(LANGUAGES), case_sensitive=False),
    default=None,
    help="Review language. Non-English reviews are written in both languages.",
)
@click.option(
    "--provider",
    type=click.Choice(list(SUPPORTED_PROVIDERS)),
    default=None,
    help="LLM provider. Overrides config file.",
)
@click.pass_context
def review_cmd(
    ctx,
    url: str,
    post: bool,
    output_format: str,
    template: str | None,
    language: str | None,
    provider: str | None,
):
    """Review a merge/pull request with an LLM.

    Fetches the change set, asks the configured model for a review, and prints
    it as text or JSON. With --post the review is also posted back.

    \b
    Environment variables:
      GITHUB_TOKEN         GitHub token (or a gh CLI session) for GitHub URLs
      GITLAB_TOKEN         GitLab token (or a glab CLI session) for GitLab URLs
      GITLAB_URL           GitLab instance (default https://gitlab.com)
      LLM_PROVIDER         anthropic (default) or ollama
      ANTHROPIC_API_KEY    Required when using the anthropic provider
      OLLAMA_ENDPOINT      Ollama server (default http://localhost:11434)
      OLLAMA_MODEL         Ollama model (default gemma3:4b)
    """
    obj = ctx.obj or {}
    try:
        parsed = parse_merge_request_url(url)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--url")

    try:
        config = load_config(
            obj.get("config_path", ".reviewbot.yml"),
            cli_overrides={
                "review_prompt_template": template,
                "review_language": language,
                "llm_provider": provider,
                "verbose": obj.get("verbose") or None,
            },
        )
        token = resolve_token(parsed.platform, config.get("gitlab_url"))
        if token:
            config[f"{parsed.platform}_token"] = token
        validate_config(config, platform=parsed.platform)
    except ConfigError as e:
        raise click.UsageError(str(e))

    try:
        result = run_review(url, config, post=post)
    except ReviewBotError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print_review(result, posted=post)
