"""Shared fixtures for orgs CLI tests."""

import pytest

from orgs_cli.audit import AuditLogger

from .fakes import make_client


@pytest.fixture
def client():
    return make_client()


@pytest.fixture
def audit_logger(tmp_path):
    return AuditLogger(log_dir=tmp_path / "logs")
