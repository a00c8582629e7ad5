"""Resources returned by the orgs API.

The API wraps every resource in an envelope of the form
``{"id": ..., "body": {...}}``; the ``from_api`` constructors unwrap it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Organization:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Organization":
        return cls(id=data['id'], name=data['body']['name'])


@dataclass(frozen=True)
class User:
    id: str
    username: str = ""
    email: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "User":
        body = data.get('body', {})
        return cls(
            id=data['id'],
            username=body.get('username', ""),
            email=body.get('email', ""),
        )


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    org_id: Optional[str] = None
    team_type: str = "user"

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Team":
        body = data['body']
        return cls(
            id=data['id'],
            name=body['name'],
            org_id=body.get('org_id'),
            team_type=body.get('team_type', "user"),
        )


@dataclass(frozen=True)
class InviteRequest:
    """A fully resolved invite, ready to submit."""

    email: str
    org_id: str
    inviter_id: str
    team_ids: Tuple[str, ...] = field(default_factory=tuple)

    def to_api(self) -> Dict[str, Any]:
        return {
            'email': self.email,
            'org_id': self.org_id,
            'inviter_id': self.inviter_id,
            'pending_teams': list(self.team_ids),
        }
