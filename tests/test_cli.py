"""Tests for the orgs command line surface."""

import unittest
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from cryptography.fernet import Fernet

from orgs_cli import __version__, audit
from orgs_cli.api import APIError
from orgs_cli.cli import create_cli, get_api_client, main
from orgs_cli.config import Config
from orgs_cli.models import Organization

from .fakes import make_client


class TestInvitesSend(unittest.TestCase):
    """Test cases for `orgs invites send`."""

    def setUp(self) -> None:
        self.runner = CliRunner()
        self.client = make_client()
        self.client.__enter__.return_value = self.client

        client_patcher = patch('orgs_cli.cli.get_api_client', return_value=self.client)
        self.get_api_client = client_patcher.start()
        self.addCleanup(client_patcher.stop)

        audit_patcher = patch('orgs_cli.cli.get_audit_logger', return_value=MagicMock())
        self.audit_logger = audit_patcher.start().return_value
        self.addCleanup(audit_patcher.stop)

    def invoke(self, *args: str):
        return self.runner.invoke(main, ['invites', 'send', *args])

    def test_send_to_named_team(self) -> None:
        result = self.invoke('--org', 'acme', '--team', 'admins', 'bob@example.com')

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Invitation to join the acme organization has been sent to bob@example.com.", result.output)
        self.assertIn("admins", result.output)
        self.assertIn("They will receive an e-mail with instructions.", result.output)
        self.client.send_invite.assert_called_once_with("bob@example.com", "org-acme", "user-alice", ("T2",))
        self.client.__exit__.assert_called_once()

    def test_long_summary_line_is_not_wrapped(self) -> None:
        self.client.get_org_by_name.return_value = Organization(id="org-acme", name="acme-engineering-platform")

        result = self.invoke('--org', 'acme-engineering-platform', 'robert.longname@example.com')

        self.assertEqual(result.exit_code, 0, result.output)
        lines = result.output.splitlines()
        self.assertIn(
            "Invitation to join the acme-engineering-platform organization "
            "has been sent to robert.longname@example.com.",
            lines,
        )
        self.assertIn("\tmember", lines)

    def test_send_defaults_to_member(self) -> None:
        result = self.invoke('-o', 'acme', 'bob@example.com')

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("member", result.output)
        self.client.send_invite.assert_called_once_with("bob@example.com", "org-acme", "user-alice", ("T1",))

    def test_repeated_team_flag(self) -> None:
        result = self.invoke('--org', 'acme', '-t', 'admins', '-t', 'member', 'bob@example.com')

        self.assertEqual(result.exit_code, 0, result.output)
        self.client.send_invite.assert_called_once_with(
            "bob@example.com", "org-acme", "user-alice", ("T2", "T1")
        )

    def test_missing_org_flag(self) -> None:
        result = self.invoke('bob@example.com')

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Missing --org flag", result.output)
        self.assertIn("orgs invites send [command options] <email>", result.output)
        self.get_api_client.assert_not_called()

    def test_missing_email(self) -> None:
        result = self.invoke('--org', 'acme')

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Missing email", result.output)
        self.assertIn("orgs invites send [command options] <email>", result.output)
        self.get_api_client.assert_not_called()

    def test_unknown_team(self) -> None:
        result = self.invoke('--org', 'acme', '--team', 'owners', 'bob@example.com')

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown team(s): owners", result.output)
        self.client.send_invite.assert_not_called()

    def test_overlong_team_name_reported_with_unknown_teams(self) -> None:
        long_name = "x" * 129

        result = self.invoke('--org', 'acme', '-t', 'owners', '-t', long_name, 'bob@example.com')

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown team(s): owners", result.output)
        self.assertIn("x" * 40, result.output)
        self.assertNotIn("cannot exceed", result.output)
        self.client.get_teams_by_org.assert_called_once_with("org-acme")
        self.client.send_invite.assert_not_called()

    def test_org_not_found(self) -> None:
        self.client.get_org_by_name.return_value = None

        result = self.invoke('--org', 'acme', 'bob@example.com')

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Org not found", result.output)
        self.client.get_self.assert_not_called()

    def test_already_invited(self) -> None:
        self.client.send_invite.side_effect = APIError("resource exists", status_code=409)

        result = self.invoke('--org', 'acme', 'bob@example.com')

        self.assertEqual(result.exit_code, 1)
        self.assertIn("bob@example.com has already been invited to the acme org", result.output)

    def test_generic_failure_hides_transport_error(self) -> None:
        self.client.get_self.side_effect = APIError("Connection error: secret-host refused")

        result = self.invoke('--org', 'acme', 'bob@example.com')

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Could not send invitation to org", result.output)
        self.assertNotIn("secret-host", result.output)


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setenv("ORGS_ENCRYPTION_KEY", Fernet.generate_key().decode())
    monkeypatch.delenv("ORGS_URL", raising=False)
    monkeypatch.delenv("ORGS_TOKEN", raising=False)
    config = Config(config_dir=tmp_path / "orgs")
    with patch('orgs_cli.cli.config', config), \
            patch('orgs_cli.cli.get_audit_logger', return_value=MagicMock()):
        yield config


def test_send_requires_configuration(isolated_config):
    result = CliRunner().invoke(main, ['invites', 'send', '--org', 'acme', 'bob@example.com'])

    assert result.exit_code == 1
    assert "not configured" in result.output


def test_config_sets_and_shows_values(isolated_config):
    runner = CliRunner()

    result = runner.invoke(main, ['config', '--url', 'https://api.example.com', '--token', 'tok_1234567890'])
    assert result.exit_code == 0, result.output
    assert "Updated url" in result.output
    assert "Updated token" in result.output
    assert isolated_config.get_token() == 'tok_1234567890'

    result = runner.invoke(main, ['config'])
    assert result.exit_code == 0, result.output
    assert "https://api.example.com" in result.output
    assert "tok_...7890" in result.output
    assert "tok_1234567890" not in result.output


def test_config_rejects_bad_url(isolated_config):
    result = CliRunner().invoke(main, ['config', '--url', 'api.example.com'])

    assert result.exit_code == 1
    assert not isolated_config.is_configured()


def test_command_table():
    cli = create_cli()

    assert sorted(cli.commands) == ['config', 'invites']
    assert sorted(cli.commands['invites'].commands) == ['send']
    assert create_cli() is not cli


def test_version():
    result = CliRunner().invoke(main, ['--version'])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_empty_org_is_usage_error(isolated_config):
    result = CliRunner().invoke(main, ['invites', 'send', '--org', '', 'bob@example.com'])

    assert result.exit_code == 1
    assert "Missing --org flag" in result.output
    assert "not configured" not in result.output


def test_environment_only_configuration(isolated_config, monkeypatch):
    monkeypatch.setenv("ORGS_URL", "https://api.example.com")
    monkeypatch.setenv("ORGS_TOKEN", "tok_1234567890")

    client = get_api_client()
    client.close()

    assert client.base_url == "https://api.example.com"
    assert client.session.headers['Authorization'] == 'Bearer tok_1234567890'


def test_send_without_writable_audit_log(tmp_path, monkeypatch):
    not_a_dir = tmp_path / "home"
    not_a_dir.write_text("")
    monkeypatch.setenv("HOME", str(not_a_dir))
    monkeypatch.setattr(audit, "_audit_logger", None)
    monkeypatch.setattr(audit, "_audit_unavailable", False)
    client = make_client()
    client.__enter__.return_value = client

    with patch('orgs_cli.cli.get_api_client', return_value=client):
        result = CliRunner().invoke(main, ['invites', 'send', '--org', 'acme', 'bob@example.com'])

    assert result.exit_code == 0, result.output
    assert "has been sent to bob@example.com" in result.output
    client.send_invite.assert_called_once_with("bob@example.com", "org-acme", "user-alice", ("T1",))
