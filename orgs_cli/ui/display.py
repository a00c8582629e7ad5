"""Display utilities for the orgs CLI."""

from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.markup import escape

from ..invites import InviteOutcome

console = Console()


def display_invite_sent(outcome: InviteOutcome) -> None:
    """Confirm a sent invite and list the teams the invitee will join.

    Written with click.echo so the summary line is never re-wrapped and team
    names keep their leading tab.

    Args:
        outcome: The SENT outcome returned by the dispatcher.
    """
    click.echo(click.style(outcome.message, fg='green'))
    click.echo("\nThey will be added to the following teams once their invite has been confirmed:\n")
    for team in outcome.teams:
        click.echo("\t" + click.style(team, fg='cyan'))
    click.echo("\nThey will receive an e-mail with instructions.")


def display_config(settings: Dict[str, Any], out: Optional[Console] = None) -> None:
    """Show the current configuration with the token masked."""
    out = out or console

    url = settings.get('url')
    token = settings.get('token')

    if url:
        out.print(f"[green]URL:[/green] {escape(url)}")
    if token:
        masked_token = token[:4] + "..." + token[-4:] if len(token) > 8 else "********"
        out.print(f"[green]Token:[/green] {masked_token}")
    out.print(f"[green]Timeout:[/green] {settings.get('timeout', 30)}s")
    out.print(f"[green]Retries:[/green] {settings.get('retries', 3)}")

    if not (url and token):
        out.print("\n[yellow]Not fully configured.[/yellow]")
        out.print("Usage: [cyan]orgs config --url <URL> --token <TOKEN>[/cyan]")
