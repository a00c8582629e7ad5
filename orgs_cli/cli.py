"""Main CLI interface for the orgs CLI."""

import logging
import sys
from typing import Optional, Tuple

import click
from rich.console import Console

from . import __version__
from .api import OrgsAPIClient
from .audit import get_audit_logger
from .config import Config, ConfigError
from .errors import ConfigurationError, InviteError, UsageError, handle_exception
from .invites import InviteDispatcher
from .ui.display import display_config, display_invite_sent
from .validators import InputValidator, ValidationError

console = Console()
config = Config()

SEND_ARGS_USAGE = "<email>"


def configure_logging(debug: bool) -> None:
    """Send orgs_cli debug logging to stderr when --debug is given."""
    package_logger = logging.getLogger('orgs_cli')
    if not debug:
        package_logger.setLevel(logging.WARNING)
        return

    package_logger.setLevel(logging.DEBUG)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
        package_logger.addHandler(handler)


def command_usage(ctx: click.Context, args_usage: str) -> str:
    """Build the usage text shown with missing-input errors."""
    return f"Usage:\n    {ctx.command_path} [command options] {args_usage}"


def get_api_client() -> OrgsAPIClient:
    """Get an API client for the configured session.

    Raises:
        ConfigurationError: If the CLI is not configured.
    """
    try:
        settings = config.load()
    except ConfigError as e:
        raise ConfigurationError(str(e), ["Reconfigure the CLI: orgs config --url <URL> --token <TOKEN>"])

    if not config.is_configured():
        raise ConfigurationError(
            "orgs CLI is not configured",
            [
                "Configure the CLI: orgs config --url <URL> --token <TOKEN>",
                "Or set ORGS_URL and ORGS_TOKEN in the environment",
            ]
        )

    return OrgsAPIClient(
        base_url=settings['url'],
        token=settings['token'],
        timeout=settings['timeout'],
        max_retries=settings['retries'],
        audit_logger=get_audit_logger()
    )


@click.command(name='config')
@click.option('--url', help='API URL (e.g., https://api.example.com)')
@click.option('--token', help='Session token')
@click.option('--timeout', type=int, help='Request timeout in seconds')
def config_cmd(url: Optional[str], token: Optional[str], timeout: Optional[int]) -> None:
    """Configure the orgs CLI."""
    if url is None and token is None and timeout is None:
        try:
            display_config(config.load(validate=False))
        except ConfigError as e:
            handle_exception(ConfigurationError(str(e)), "Failed to read configuration")
        return

    try:
        changes = {
            'url': InputValidator.validate_url(url) if url is not None else None,
            'token': InputValidator.validate_api_token(token) if token is not None else None,
            'timeout': InputValidator.validate_timeout(timeout) if timeout is not None else None,
        }
        previous = config.update(**changes)
    except (ValidationError, ConfigError) as e:
        handle_exception(ConfigurationError(str(e)), "Failed to update configuration")
        return

    audit_logger = get_audit_logger()
    for key, old_value in previous.items():
        if audit_logger:
            audit_logger.log_configuration_change(key, old_value, changes[key])
        console.print(f"[green]✓[/green] Updated {key}")


@click.command(name='send')
@click.option('--org', '-o', help='Org to invite user to')
@click.option('--team', '-t', 'teams', multiple=True, metavar='TEAM',
              help='Team to add user to (repeatable, default: member)')
@click.argument('email', required=False)
@click.pass_context
def send_cmd(ctx: click.Context, org: Optional[str], teams: Tuple[str, ...], email: Optional[str]) -> None:
    """Send an invitation to join an organization to an email address."""
    usage = command_usage(ctx, SEND_ARGS_USAGE)

    if not org:
        handle_exception(UsageError("Missing --org flag", usage))
    if not email:
        handle_exception(UsageError("Missing email", usage))

    # Team names are matched exactly by the resolver, so only the org is checked here
    try:
        InputValidator.validate_name(org, "org")
    except ValidationError as e:
        handle_exception(UsageError(str(e), usage))

    try:
        with get_api_client() as client:
            dispatcher = InviteDispatcher(client, audit_logger=get_audit_logger(), usage=usage)
            with console.status("[cyan]Sending invitation...", spinner="dots"):
                outcome = dispatcher.send_invite(org, email, list(teams))
    except InviteError as e:
        handle_exception(e)
        return

    display_invite_sent(outcome)


def create_cli() -> click.Group:
    """Assemble the command table."""

    @click.group(name='orgs')
    @click.version_option(version=__version__)
    @click.option('--debug', is_flag=True, help='Log API requests to stderr')
    def main(debug: bool) -> None:
        """orgs CLI - manage organization invites from the command line."""
        configure_logging(debug)

    invites = click.Group(name='invites', help='Send organization invites')
    invites.add_command(send_cmd)

    main.add_command(config_cmd)
    main.add_command(invites)
    return main


main = create_cli()


if __name__ == '__main__':
    main()
