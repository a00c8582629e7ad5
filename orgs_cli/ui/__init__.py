"""UI components for the orgs CLI."""

from .display import display_config, display_invite_sent

__all__ = [
    'display_config',
    'display_invite_sent',
]
