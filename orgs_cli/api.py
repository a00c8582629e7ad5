"""API client for the organizations service."""

import json
import logging
from typing import Any, Dict, List, Optional, Self, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import __version__
from .audit import AuditLogger
from .models import InviteRequest, Organization, Team, User

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Raised when a request to the API fails.

    Attributes:
        status_code: HTTP status, or None when no response was received.
        error_type: The ``type`` field of the API error body, if any.
    """

    def __init__(
        self: Self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


class OrgsAPIClient:
    """Client for the organizations, users, teams and invites endpoints."""

    def __init__(
        self: Self,
        base_url: str,
        token: str,
        timeout: int = 30,
        max_retries: int = 3,
        audit_logger: Optional[AuditLogger] = None
    ) -> None:
        """Initialize API client.

        Args:
            base_url: Base URL of the API (e.g., https://api.example.com)
            token: Session token
            timeout: Request timeout in seconds
            max_retries: Maximum number of retries for GET requests
            audit_logger: Optional audit logger for request events
        """
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.max_retries = max_retries
        self.audit_logger = audit_logger
        self.session = requests.Session()
        self._setup_session()

    def _setup_session(self: Self) -> None:
        """Setup session with connection pooling and retry strategy."""
        # Only idempotent reads are retried; an invite is never resent
        retry_strategy = Retry(
            total=self.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"]
        )

        adapter = HTTPAdapter(
            pool_connections=10,
            pool_maxsize=10,
            max_retries=retry_strategy
        )
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

        self.session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'Content-Type': 'application/json',
            'User-Agent': f'orgs-cli/{__version__}'
        })

    def _request(
        self: Self,
        method: str,
        endpoint: str,
        **kwargs: Any
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body.

        Raises:
            APIError: If the request fails.
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug("%s %s", method, url)

        if self.audit_logger:
            self.audit_logger.log_data_access(resource_name=endpoint, action=method.lower())

        try:
            response = self.session.request(
                method,
                url,
                timeout=self.timeout,
                **kwargs
            )
            response.raise_for_status()

            if response.content:
                return response.json()
            return None

        except requests.exceptions.Timeout as e:
            self._log_error("request_timeout", str(e), url, method)
            raise APIError(f"Request timeout: {e}")

        except requests.exceptions.ConnectionError as e:
            self._log_error("connection_error", str(e), url, method)
            raise APIError(f"Connection error: {e}")

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code
            error_type = None
            try:
                error_data = e.response.json()
                error_type = error_data.get('type')
                error_msg = self._error_text(error_data.get('error')) or str(e)
            except (ValueError, AttributeError):
                error_msg = e.response.text or str(e)

            self._log_error("http_error", error_msg, url, method, status_code)
            raise APIError(error_msg, status_code=status_code, error_type=error_type)

        except json.JSONDecodeError as e:
            self._log_error("invalid_response", str(e), url, method)
            raise APIError(f"Invalid JSON in response: {e}")

        except requests.exceptions.RequestException as e:
            self._log_error("request_error", str(e), url, method)
            raise APIError(f"Request failed: {e}")

    @staticmethod
    def _error_text(error: Any) -> str:
        if isinstance(error, list):
            return ", ".join(str(part) for part in error)
        return str(error) if error else ""

    def _log_error(
        self: Self,
        error_type: str,
        message: str,
        url: str,
        method: str,
        status_code: Optional[int] = None
    ) -> None:
        logger.debug("%s %s failed: %s", method, url, message)
        if self.audit_logger:
            details: Dict[str, Any] = {"url": url, "method": method}
            if status_code is not None:
                details["status_code"] = status_code
            self.audit_logger.log_error(error_type=error_type, error_message=message, details=details)

    @staticmethod
    def _parse(model: Any, data: Any) -> Any:
        try:
            return model.from_api(data)
        except (KeyError, TypeError, AttributeError) as e:
            raise APIError(f"Malformed {model.__name__.lower()} in response: {e}")

    def close(self: Self) -> None:
        """Close the session and cleanup resources."""
        if self.session:
            self.session.close()

    def __enter__(self: Self) -> Self:
        return self

    def __exit__(self: Self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Organizations
    def get_org_by_name(self: Self, name: str) -> Optional[Organization]:
        """Look up an organization by its unique name.

        Returns:
            The organization, or None if no organization has that name.
        """
        result = self._request('GET', '/v1/orgs', params={'name': name})
        if not result:
            return None
        if isinstance(result, dict):
            result = [result]
        if not isinstance(result, list):
            raise APIError(f"Unexpected response for organization lookup: {result!r}")
        return self._parse(Organization, result[0])

    # Users
    def get_self(self: Self) -> User:
        """Get the user the session token belongs to."""
        result = self._request('GET', '/v1/users/self')
        if not result:
            raise APIError("Empty response for current user")
        return self._parse(User, result)

    # Teams
    def get_teams_by_org(self: Self, org_id: str) -> List[Team]:
        """List every team of an organization."""
        result = self._request('GET', '/v1/teams', params={'org_id': org_id})
        return [self._parse(Team, item) for item in result or []]

    # Invites
    def send_invite(
        self: Self,
        email: str,
        org_id: str,
        inviter_id: str,
        team_ids: Sequence[str]
    ) -> None:
        """Create an org invite that adds the invitee to ``team_ids`` on acceptance.

        Raises:
            APIError: If the invite could not be created. A duplicate
                invite is reported with status 409.
        """
        request = InviteRequest(
            email=email,
            org_id=org_id,
            inviter_id=inviter_id,
            team_ids=tuple(team_ids),
        )
        self._request('POST', '/v1/org-invites', json=request.to_api())
