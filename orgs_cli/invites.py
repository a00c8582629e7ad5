"""Sending organization invites.

``resolve_team_names`` turns the team names given on the command line into
team ids of the target organization, and ``InviteDispatcher`` runs the
lookups and submits a single invite carrying those ids.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Self, Sequence

from .api import APIError
from .audit import AuditLogger
from .errors import (
    DuplicateInviteError,
    InviteError,
    InviteFailedError,
    NotFoundError,
    UnknownTeamsError,
    UsageError,
)
from .models import InviteRequest, Organization, Team, User

logger = logging.getLogger(__name__)

DEFAULT_TEAM = "member"
DUPLICATE_INVITE_TEXT = "resource exists"


class InviteBackend(Protocol):
    """The API operations an invite needs."""

    def get_org_by_name(self, name: str) -> Optional[Organization]: ...

    def get_self(self) -> User: ...

    def get_teams_by_org(self, org_id: str) -> List[Team]: ...

    def send_invite(
        self,
        email: str,
        org_id: str,
        inviter_id: str,
        team_ids: Sequence[str]
    ) -> None: ...


class InviteStatus(Enum):
    SENT = "sent"
    ALREADY_INVITED = "already_invited"
    FAILED = "failed"


@dataclass(frozen=True)
class InviteOutcome:
    """Result of a single invite dispatch."""

    status: InviteStatus
    email: str
    org_name: str
    teams: List[str] = field(default_factory=list)
    reason: str = ""
    request: Optional[InviteRequest] = None

    @property
    def ok(self) -> bool:
        return self.status is InviteStatus.SENT

    @property
    def message(self) -> str:
        if self.status is InviteStatus.SENT:
            return (f"Invitation to join the {self.org_name} organization "
                    f"has been sent to {self.email}.")
        if self.status is InviteStatus.ALREADY_INVITED:
            return f"{self.email} has already been invited to the {self.org_name} org"
        return self.reason


def resolve_team_names(requested: Sequence[str], teams: Sequence[Team]) -> List[str]:
    """Map requested team names to team ids of one organization.

    Names are compared exactly. When the organization has several teams with
    the same name, the first one in ``teams`` is used. Every name without a
    match is collected so the caller can report them all at once.

    Args:
        requested: Team names in the order the user gave them.
        teams: All teams of the organization.

    Returns:
        One team id per requested name, in request order.

    Raises:
        UnknownTeamsError: If any requested name has no matching team.
        InviteFailedError: If nothing was requested.
    """
    ids_by_name: Dict[str, str] = {}
    for team in teams:
        ids_by_name.setdefault(team.name, team.id)

    team_ids = []
    missing = []
    for name in requested:
        if name in ids_by_name:
            team_ids.append(ids_by_name[name])
        else:
            missing.append(name)

    if missing:
        raise UnknownTeamsError(missing)
    if not team_ids:
        raise InviteFailedError()
    return team_ids


def is_duplicate_invite(error: APIError) -> bool:
    """Check whether an API error means the invite already exists.

    A 409 status or a ``conflict`` error type is authoritative; the error
    text is only inspected when the API returns neither.
    """
    if error.status_code == 409 or error.error_type == "conflict":
        return True
    return DUPLICATE_INVITE_TEXT in str(error)


class InviteDispatcher:
    """Resolves an invite against the API and submits it."""

    def __init__(
        self: Self,
        client: InviteBackend,
        audit_logger: Optional[AuditLogger] = None,
        usage: str = ""
    ) -> None:
        """Initialize the dispatcher.

        Args:
            client: API client used for lookups and the invite itself.
            audit_logger: Optional audit logger for invite results.
            usage: Usage text attached to errors for missing input.
        """
        self.client = client
        self.audit_logger = audit_logger
        self.usage = usage

    def send_invite(
        self: Self,
        org_name: Optional[str],
        email: Optional[str],
        team_names: Optional[Sequence[str]] = None,
        raise_errors: bool = True
    ) -> InviteOutcome:
        """Invite ``email`` to ``org_name`` and the named teams.

        Args:
            org_name: Name of the organization to invite to.
            email: Address of the invitee.
            team_names: Teams the invitee joins on acceptance.
                Defaults to the "member" team.
            raise_errors: When False, failures are returned as an
                ``InviteOutcome`` instead of raised.

        Returns:
            The SENT outcome, or any outcome when ``raise_errors`` is False.

        Raises:
            InviteError: A subclass describing why the invite was not sent.
        """
        teams = list(team_names) if team_names else [DEFAULT_TEAM]

        try:
            outcome = self._dispatch(org_name, email, teams)
        except InviteError as e:
            duplicate = isinstance(e, DuplicateInviteError)
            self._audit(org_name, email, teams, "ALREADY_INVITED" if duplicate else "FAILED", e.message)
            if raise_errors:
                raise
            return InviteOutcome(
                status=InviteStatus.ALREADY_INVITED if duplicate else InviteStatus.FAILED,
                email=email or "",
                org_name=org_name or "",
                teams=teams,
                reason=e.message,
            )

        self._audit(org_name, email, teams, "SENT")
        return outcome

    def _dispatch(self: Self, org_name: Optional[str], email: Optional[str], teams: List[str]) -> InviteOutcome:
        if not org_name:
            raise UsageError("Missing --org flag", self.usage)
        if not email:
            raise UsageError("Missing email", self.usage)

        try:
            org = self.client.get_org_by_name(org_name)
        except APIError as e:
            logger.debug("org lookup for %s failed: %s", org_name, e)
            raise InviteFailedError() from e
        if org is None:
            raise NotFoundError()

        try:
            user = self.client.get_self()
        except APIError as e:
            logger.debug("current user lookup failed: %s", e)
            raise InviteFailedError() from e

        try:
            org_teams = self.client.get_teams_by_org(org.id)
        except APIError as e:
            logger.debug("team listing for org %s failed: %s", org.id, e)
            raise InviteFailedError() from e

        team_ids = resolve_team_names(teams, org_teams)
        request = InviteRequest(
            email=email,
            org_id=org.id,
            inviter_id=user.id,
            team_ids=tuple(team_ids),
        )

        try:
            self.client.send_invite(request.email, request.org_id, request.inviter_id, request.team_ids)
        except APIError as e:
            logger.debug("invite for %s to %s failed: %s", email, org.name, e)
            if is_duplicate_invite(e):
                raise DuplicateInviteError(email, org.name) from e
            raise InviteFailedError() from e

        return InviteOutcome(
            status=InviteStatus.SENT,
            email=email,
            org_name=org.name,
            teams=teams,
            request=request,
        )

    def _audit(
        self: Self,
        org_name: Optional[str],
        email: Optional[str],
        teams: List[str],
        result: str,
        reason: str = ""
    ) -> None:
        if self.audit_logger is None:
            return
        self.audit_logger.log_invite(
            org_name=org_name or "",
            email=email or "",
            teams=teams,
            result=result,
            details={"reason": reason} if reason else None,
        )
