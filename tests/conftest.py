"""Shared test fixtures.

Provides a fake identity provider served through ``httpx.MockTransport``
so discovery, token exchange, JWKS and user-info run through the real
authlib/httpx stack without network access.
"""

import time
from typing import Any

import httpx
import pytest
from authlib.jose import JsonWebKey, jwt

from oidc_adapter.auth.key_store_memory import MemoryKeyStore
from oidc_adapter.auth.providers import OIDCConfig

ISSUER = "https://idp.example"
CLIENT_ID = "client-123"
CLIENT_SECRET = "secret-456"
REDIRECT_URI = "https://app.example/oidc/callback"

DISCOVERY_DOCUMENT = {
    "issuer": ISSUER,
    "authorization_endpoint": f"{ISSUER}/authorize",
    "token_endpoint": f"{ISSUER}/token",
    "userinfo_endpoint": f"{ISSUER}/userinfo",
    "jwks_uri": f"{ISSUER}/jwks",
    "response_types_supported": ["code"],
    "subject_types_supported": ["public"],
    "id_token_signing_alg_values_supported": ["RS256"],
}


class FakeIdentityProvider:
    """Minimal OpenID provider answering on the standard endpoints."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.discovery: dict[str, Any] = dict(DISCOVERY_DOCUMENT)
        self.token_status = 200
        self.token_response: dict[str, Any] = {
            "access_token": "access-1",
            "token_type": "Bearer",
            "expires_in": 3600,
        }
        self.userinfo: dict[str, Any] = {"sub": "u-42", "email": "a@b.com"}
        self.jwks: dict[str, Any] = {"keys": []}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/.well-known/openid-configuration":
            return httpx.Response(200, json=self.discovery)
        if path == "/token":
            return httpx.Response(self.token_status, json=self.token_response)
        if path == "/userinfo":
            return httpx.Response(200, json=self.userinfo)
        if path == "/jwks":
            return httpx.Response(200, json=self.jwks)
        return httpx.Response(404, json={"error": "not_found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


class SigningKey:
    """RSA key publishing a JWK and signing id_tokens."""

    def __init__(self, kid: str):
        self.kid = kid
        self.private_key = JsonWebKey.generate_key("RSA", 2048, is_private=True)

    @property
    def public_jwk(self) -> dict[str, Any]:
        jwk = self.private_key.as_dict(is_private=False)
        jwk.update({"kid": self.kid, "use": "sig", "alg": "RS256"})
        return jwk

    def sign(self, **claims: Any) -> str:
        now = int(time.time())
        payload = {
            "iss": ISSUER,
            "sub": "u-42",
            "aud": CLIENT_ID,
            "iat": now,
            "exp": now + 300,
        }
        payload.update(claims)
        token = jwt.encode({"alg": "RS256", "kid": self.kid}, payload, self.private_key)
        return token.decode("ascii")


@pytest.fixture
def idp() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture(scope="session")
def signing_key() -> SigningKey:
    return SigningKey("key-1")


@pytest.fixture
def config() -> OIDCConfig:
    return OIDCConfig(
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
        redirect_uri=REDIRECT_URI,
        issuer_url=ISSUER,
    )


@pytest.fixture
def store() -> MemoryKeyStore:
    return MemoryKeyStore()
