"""Error handling and recovery suggestions for the orgs CLI.

Every failure of the invite flow is classified into one of the exceptions
below before it reaches the command layer, which renders it through
``ErrorHandler`` and exits with a non-zero status.
"""

import sys
from typing import List, Optional, Self

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console(stderr=True)

INVITE_FAILED_MESSAGE = "Could not send invitation to org, please try again."


class InviteError(Exception):
    """Base exception class for orgs CLI errors."""

    def __init__(self: Self, message: str, suggestions: Optional[List[str]] = None) -> None:
        """Initialize the error.

        Args:
            message: The error message to display.
            suggestions: Optional list of recovery suggestions.
        """
        super().__init__(message)
        self.message = message
        self.suggestions = suggestions or []


class UsageError(InviteError):
    """Raised when a required flag or argument is missing."""

    def __init__(self: Self, message: str, usage: str = "") -> None:
        text = f"{message}\n\n{usage}" if usage else message
        super().__init__(text)
        self.usage = usage


class ConfigurationError(InviteError):
    """Raised when the CLI has no usable session configuration."""
    pass


class NotFoundError(InviteError):
    """Raised when the named organization does not exist."""

    def __init__(self: Self, message: str = "Org not found") -> None:
        super().__init__(message, [
            "Check the spelling of the organization name",
            "Organization names are case-sensitive",
        ])


class UnknownTeamsError(InviteError):
    """Raised when requested team names are not known to the organization."""

    def __init__(self: Self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__("Unknown team(s): " + ", ".join(self.missing))


class DuplicateInviteError(InviteError):
    """Raised when an invite for the email already exists in the organization."""

    def __init__(self: Self, email: str, org_name: str) -> None:
        self.email = email
        self.org_name = org_name
        super().__init__(f"{email} has already been invited to the {org_name} org")


class InviteFailedError(InviteError):
    """Raised for any other failure while sending an invite."""

    def __init__(self: Self, message: str = INVITE_FAILED_MESSAGE) -> None:
        super().__init__(message)


class ErrorHandler:
    """Displays errors with recovery suggestions."""

    GENERIC_SUGGESTIONS = [
        "Check your connection to the API: orgs config",
        "Re-run the command with --debug for more details",
    ]

    def get_suggestions(self: Self, error: Exception) -> List[str]:
        """Get recovery suggestions for an error.

        Args:
            error: The exception to analyze.

        Returns:
            List of recovery suggestions.
        """
        if isinstance(error, InviteError):
            if error.suggestions:
                return error.suggestions
            if isinstance(error, InviteFailedError):
                return self.GENERIC_SUGGESTIONS
            return []
        return self.GENERIC_SUGGESTIONS

    def display_error(
        self: Self,
        error: Exception,
        context: Optional[str] = None,
        show_suggestions: bool = True
    ) -> None:
        """Display an error with formatting and suggestions.

        Args:
            error: The exception that occurred.
            context: Optional context about what was being attempted.
            show_suggestions: Whether to show recovery suggestions.
        """
        error_message = error.message if isinstance(error, InviteError) else str(error)

        content = []
        if context:
            content.append(f"[bold]Context:[/bold] {escape(context)}")
            content.append("")

        content.append(f"[bold red]Error:[/bold red] {escape(error_message)}")

        if show_suggestions:
            suggestions = self.get_suggestions(error)
            if suggestions:
                content.append("")
                content.append("[bold blue]Suggested solutions:[/bold blue]")
                for i, suggestion in enumerate(suggestions, 1):
                    content.append(f"  {i}. {escape(suggestion)}")

        console.print(Panel(
            "\n".join(content),
            title="[bold red]orgs CLI Error[/bold red]",
            border_style="red",
            expand=False
        ))


def handle_exception(
    error: Exception,
    context: Optional[str] = None,
    exit_code: int = 1
) -> None:
    """Display the error and terminate the process.

    Args:
        error: The exception that occurred.
        context: Optional context about what was being attempted.
        exit_code: Exit code to use when terminating.
    """
    ErrorHandler().display_error(error, context)
    sys.exit(exit_code)
