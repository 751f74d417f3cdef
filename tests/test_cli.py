"""Tests for the command-line interface."""

import pytest
from typer.testing import CliRunner

from expo_auth.cli import app

runner = CliRunner()

ENV_KEYS = [
    "AUTH0_TENANTS",
    "AUTH0_DOMAIN",
    "AUTH0_CLIENT_ID",
    "AUTH0_CLIENT_SECRET",
    "AUTH0_AUDIENCE",
    "PUBLIC_BASE_URL",
]


@pytest.fixture
def env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("AUTH0_DOMAIN", "solo.example-idp.com")
    monkeypatch.setenv("AUTH0_CLIENT_ID", "solo-client-id-1234")
    return monkeypatch


def test_status(env):
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "solo.example-idp.com" in result.output
    assert "PKCE" in result.output


def test_status_without_tenants(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 1
    assert "Missing configuration" in result.output


def test_pkce():
    result = runner.invoke(app, ["pkce"])
    assert result.exit_code == 0
    assert "code_verifier" in result.output
    assert "code_challenge" in result.output


def test_authorize_url(env):
    result = runner.invoke(app, ["authorize-url", "--return-url", "exp://localhost/--/auth", "--state", "abc"])
    assert result.exit_code == 0
    assert "https://solo.example-idp.com/authorize?" in result.output


def test_authorize_url_rejects_bad_return_url(env):
    result = runner.invoke(app, ["authorize-url", "--return-url", "ftp://x", "--state", "abc"])
    assert result.exit_code == 1
    assert "Invalid returnUrl" in result.output
