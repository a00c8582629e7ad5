"""orgs CLI - manage organization invites from the command line."""

__version__ = "0.1.0"
