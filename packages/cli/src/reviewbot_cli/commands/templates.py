"""templates command — list the review prompt templates."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewbot_core.prompts import DEFAULT_TEMPLATE, list_templates

console = Console()


@click.command("templates")
def templates_cmd():
    """List the available review prompt templates.

    Select one with `reviewbot review --template NAME` or
    REVIEW_PROMPT_TEMPLATE in the environment / .reviewbot.yml.
    """
    table = Table(title="Review Templates", show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("Description")

    for t in list_templates():
        name = f"{t['name']} [dim](default)[/dim]" if t["name"] == DEFAULT_TEMPLATE else t["name"]
        table.add_row(name, t["description"])

    console.print(table)
