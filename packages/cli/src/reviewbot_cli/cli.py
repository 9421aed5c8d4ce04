"""CLI entry point for reviewbot.

Commands:
  review     — run an AI review on a GitHub pull request or GitLab merge request
  templates  — list the available review prompt templates
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from reviewbot_cli.commands.review import review_cmd
from reviewbot_cli.commands.templates import templates_cmd

# Loggers whose output the CLI shows; everything else stays at library defaults.
_LOGGERS = ("reviewbot_core", "reviewbot_cli")


def _configure_logging(verbose: bool) -> None:
    """Send reviewbot log records to stderr through rich.

    stderr keeps ``--format json`` output on stdout machine-readable.
    """
    level = logging.DEBUG if verbose else logging.INFO
    for name in _LOGGERS:
        log = logging.getLogger(name)
        log.setLevel(level)
        if not any(isinstance(h, RichHandler) for h in log.handlers):
            handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
            handler.setFormatter(logging.Formatter("%(message)s"))
            log.addHandler(handler)


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewbot"),
    prog_name="reviewbot",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewbot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWBOT_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Debug logging and full API request/response traces.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI-powered code review for GitHub pull requests and GitLab merge requests."""
    ctx.ensure_object(dict)
    _configure_logging(verbose)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


main.add_command(review_cmd)
main.add_command(templates_cmd)
