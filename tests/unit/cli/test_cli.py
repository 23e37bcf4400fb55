"""Tests for the oidc-adapter CLI."""

from unittest.mock import AsyncMock, patch

import httpx
from typer.testing import CliRunner

from conftest import CLIENT_ID, CLIENT_SECRET, DISCOVERY_DOCUMENT, ISSUER
from oidc_adapter.cli.main import app
from oidc_adapter.auth.oidc_client import OIDCClient, ProviderMetadata

runner = CliRunner()


def discovered_client() -> OIDCClient:
    return OIDCClient(
        ProviderMetadata.model_validate(DISCOVERY_DOCUMENT),
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
    )


def test_discover_prints_metadata():
    with patch.object(OIDCClient, "discover", AsyncMock(return_value=discovered_client())):
        result = runner.invoke(app, ["discover", "--issuer-url", ISSUER])

    assert result.exit_code == 0
    assert f"{ISSUER}/token" in result.output


def test_discover_failure_exits_nonzero():
    failure = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
    with patch.object(OIDCClient, "discover", failure):
        result = runner.invoke(app, ["discover", "--issuer-url", ISSUER])

    assert result.exit_code == 1
    assert "Discovery failed" in result.output


def test_authorize_url_with_explicit_state():
    with patch.object(OIDCClient, "discover", AsyncMock(return_value=discovered_client())):
        result = runner.invoke(
            app,
            ["authorize-url", "--issuer-url", ISSUER, "--client-id", CLIENT_ID, "--state", "xyz"],
        )

    assert result.exit_code == 0
    assert f"{ISSUER}/authorize?" in result.output
    assert "state=xyz" in result.output


def test_authorize_url_without_state():
    with patch.object(OIDCClient, "discover", AsyncMock(return_value=discovered_client())):
        result = runner.invoke(
            app,
            ["authorize-url", "--issuer-url", ISSUER, "--client-id", CLIENT_ID, "--no-state"],
        )

    assert result.exit_code == 0
    assert "state=" not in result.output
    assert "State:" not in result.output


def test_authorize_url_with_empty_state_sends_none():
    with patch.object(OIDCClient, "discover", AsyncMock(return_value=discovered_client())):
        result = runner.invoke(
            app,
            ["authorize-url", "--issuer-url", ISSUER, "--client-id", CLIENT_ID, "--state", ""],
        )

    assert result.exit_code == 0
    assert "state=" not in result.output
    assert "State:" not in result.output


def test_authorize_url_generates_state_by_default():
    with patch.object(OIDCClient, "discover", AsyncMock(return_value=discovered_client())):
        result = runner.invoke(
            app, ["authorize-url", "--issuer-url", ISSUER, "--client-id", CLIENT_ID]
        )

    assert result.exit_code == 0
    assert "state=" in result.output
    assert "State:" in result.output
