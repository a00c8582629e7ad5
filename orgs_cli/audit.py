"""Audit logging for the orgs CLI.

Structured JSON entries are appended to ``~/.orgs/logs/audit.log`` for every
configuration change, API request, invite dispatch and error.
"""

import getpass
import json
import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__

logger = logging.getLogger(__name__)


class AuditEventType(Enum):
    """Types of audited events."""
    CONFIGURATION_CHANGE = "configuration_change"
    DATA_ACCESS = "data_access"
    INVITE = "invite"
    ERROR = "error"


class AuditLogger:
    """Writes audit events as JSON lines."""

    def __init__(self, log_dir: Optional[Path] = None) -> None:
        """Initialize audit logger.

        Args:
            log_dir: Directory for the audit log. Defaults to ~/.orgs/logs
        """
        if log_dir is None:
            log_dir = Path.home() / ".orgs" / "logs"

        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.log_dir, 0o700)

        self.audit_log_file = self.log_dir / "audit.log"
        self._setup_logging()

    def _setup_logging(self) -> None:
        self.audit_logger = logging.getLogger('orgs_audit')
        self.audit_logger.setLevel(logging.INFO)
        self.audit_logger.propagate = False

        for handler in list(self.audit_logger.handlers):
            handler.close()
            self.audit_logger.removeHandler(handler)

        if not self.audit_log_file.exists():
            self.audit_log_file.touch()
        os.chmod(self.audit_log_file, 0o600)

        handler = logging.FileHandler(self.audit_log_file)
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter('%(message)s'))
        self.audit_logger.addHandler(handler)

    def _create_log_entry(
        self,
        event_type: AuditEventType,
        message: str,
        resource: Optional[str] = None,
        action: Optional[str] = None,
        result: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        severity: str = "INFO"
    ) -> Dict[str, Any]:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type.value,
            "severity": severity,
            "message": message,
            "user": self.get_user(),
            "source": "orgs_cli",
            "version": __version__,
        }

        if resource:
            entry["resource"] = resource
        if action:
            entry["action"] = action
        if result:
            entry["result"] = result
        if details:
            entry["details"] = details

        return entry

    def log_configuration_change(
        self,
        setting: str,
        old_value: Any,
        new_value: Any
    ) -> None:
        """Log a configuration change, masking the token."""
        if setting == 'token':
            old_value = "***MASKED***" if old_value else None
            new_value = "***MASKED***" if new_value else None

        entry = self._create_log_entry(
            event_type=AuditEventType.CONFIGURATION_CHANGE,
            message=f"Configuration changed: {setting}",
            action="update_config",
            resource=setting,
            result="SUCCESS",
            details={"setting": setting, "old_value": old_value, "new_value": new_value}
        )
        self._write_entry(entry)

    def log_data_access(self, resource_name: str, action: str) -> None:
        """Log an API request."""
        entry = self._create_log_entry(
            event_type=AuditEventType.DATA_ACCESS,
            message=f"API {action} {resource_name}",
            resource=resource_name,
            action=action
        )
        self._write_entry(entry)

    def log_invite(
        self,
        org_name: str,
        email: str,
        teams: List[str],
        result: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log the result of an invite dispatch.

        Args:
            org_name: Organization the invite targets
            email: Invitee email address
            teams: Team names as requested
            result: Outcome status (SENT, ALREADY_INVITED, FAILED)
            details: Additional details
        """
        entry = self._create_log_entry(
            event_type=AuditEventType.INVITE,
            message=f"Invite {result.lower()}: {email} to {org_name}",
            resource=org_name,
            action="send_invite",
            result=result,
            details={"email": email, "teams": list(teams), **(details or {})},
            severity="INFO" if result == "SENT" else "WARNING"
        )
        self._write_entry(entry)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        entry = self._create_log_entry(
            event_type=AuditEventType.ERROR,
            message=f"Error: {error_type}",
            result="ERROR",
            details={"error_type": error_type, "error_message": error_message, **(details or {})},
            severity="ERROR"
        )
        self._write_entry(entry)

    def _write_entry(self, entry: Dict[str, Any]) -> None:
        self.audit_logger.info(json.dumps(entry, default=str))

    def get_user(self) -> str:
        """Get the local user identifier."""
        user = os.environ.get('USER') or os.environ.get('USERNAME')
        if user:
            return user
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return "unknown"


_audit_logger: Optional[AuditLogger] = None
_audit_unavailable = False


def get_audit_logger() -> Optional[AuditLogger]:
    """Get the process-wide audit logger instance.

    Returns None when the log directory cannot be created; commands then
    run without an audit trail.
    """
    global _audit_logger, _audit_unavailable
    if _audit_logger is None and not _audit_unavailable:
        try:
            _audit_logger = AuditLogger()
        except OSError as e:
            logger.warning("Audit log disabled: %s", e)
            _audit_unavailable = True
    return _audit_logger
