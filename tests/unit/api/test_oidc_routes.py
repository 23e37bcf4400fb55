"""Tests for the FastAPI login/callback routes.

The app runs under TestClient; the identity provider behind the adapter is
the httpx.MockTransport fake from conftest.
"""

import asyncio
from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from conftest import ISSUER
from oidc_adapter.api.main import create_app
from oidc_adapter.auth.provider_oidc import OIDCProvider
from oidc_adapter.settings import settings

COOKIE = settings.state_cookie_name


@pytest.fixture
def provider(idp, config, store) -> OIDCProvider:
    return OIDCProvider(store, config, transport=idp.transport)


@pytest.fixture
def client(provider):
    with TestClient(create_app(provider)) as test_client:
        yield test_client


def call_back(client: TestClient, code: str = "c1", state: str = "s-1"):
    client.cookies.clear()
    client.cookies.set(COOKIE, state)
    return client.get("/oidc/callback", params={"code": code, "state": state})


class TestLogin:
    def test_redirects_with_state_cookie(self, client):
        response = client.get("/oidc/login", follow_redirects=False)

        assert response.status_code == 307
        location = response.headers["location"]
        assert location.startswith(f"{ISSUER}/authorize?")

        state = parse_qs(urlparse(location).query)["state"][0]
        cookie = response.headers["set-cookie"]
        assert f"{COOKIE}={state}" in cookie
        assert "HttpOnly" in cookie


class TestCallback:
    def test_creates_user_on_first_login(self, client, store):
        response = call_back(client)

        assert response.status_code == 200
        body = response.json()
        assert body["created"] is True
        assert body["provider_user_id"] == "u-42"

    def test_links_existing_user_on_second_login(self, client):
        first = call_back(client).json()
        second = call_back(client, code="c2").json()

        assert second["created"] is False
        assert second["user_id"] == first["user_id"]

    def test_new_user_gets_userinfo_attributes(self, client, store):
        user_id = call_back(client).json()["user_id"]

        user = asyncio.run(store.get_user(user_id))

        assert user.attributes == {"email": "a@b.com"}

    def test_state_mismatch_rejected(self, client, idp):
        client.cookies.set(COOKIE, "expected")
        response = client.get("/oidc/callback", params={"code": "c1", "state": "forged"})

        assert response.status_code == 400
        assert idp.calls("/token") == []

    def test_missing_state_cookie_rejected(self, client):
        client.cookies.clear()
        response = client.get("/oidc/callback", params={"code": "c1", "state": "s-1"})

        assert response.status_code == 400

    def test_missing_code_rejected(self, client):
        client.cookies.set(COOKIE, "s-1")
        response = client.get("/oidc/callback", params={"state": "s-1"})

        assert response.status_code == 400

    def test_provider_error_param(self, client):
        response = client.get(
            "/oidc/callback",
            params={"error": "access_denied", "error_description": "User cancelled"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "User cancelled"

    def test_token_exchange_failure(self, client, idp):
        idp.token_status = 400
        idp.token_response = {"error": "invalid_grant"}

        response = call_back(client)

        assert response.status_code == 401

    def test_id_token_for_other_audience_rejected(self, client, idp, signing_key):
        idp.jwks = {"keys": [signing_key.public_jwk]}
        idp.token_response["id_token"] = signing_key.sign(aud="someone-else")

        response = call_back(client)

        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication failed"
        assert idp.calls("/userinfo") == []

    def test_valid_id_token_accepted(self, client, idp, signing_key):
        idp.jwks = {"keys": [signing_key.public_jwk]}
        idp.token_response["id_token"] = signing_key.sign()

        response = call_back(client)

        assert response.status_code == 200
        assert response.json()["provider_user_id"] == "u-42"

    def test_id_token_without_jwks_uri_is_bad_gateway(self, client, idp, signing_key):
        # Discovery already ran in the app lifespan; drop jwks_uri from the handle
        client.app.state.provider.client.metadata.jwks_uri = None
        idp.token_response["id_token"] = signing_key.sign()

        response = call_back(client)

        assert response.status_code == 502


class TestStatus:
    def test_status_reports_ready_provider(self, client):
        response = client.get("/status")

        assert response.status_code == 200
        body = response.json()
        assert body["provider"] == "oidc"
        assert body["provider_state"] == "ready"
        assert body["issuer"] == ISSUER

    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"
