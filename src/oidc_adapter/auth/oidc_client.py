"""OIDC client handle built from provider discovery.

Protocol work is delegated to authlib:
- authorization URLs: ``prepare_grant_uri``
- code exchange and user-info: ``AsyncOAuth2Client`` (httpx transport)
- id_token verification: ``JsonWebToken`` + ``CodeIDToken`` claims

The handle only holds discovered metadata, client credentials and a JWKS
cache. Every token exchange opens its own short-lived session so concurrent
callbacks never share token state.
"""

import time
from typing import Any

import httpx
from authlib.integrations.httpx_client import AsyncOAuth2Client
from authlib.jose import JsonWebKey, JsonWebToken
from authlib.jose.errors import JoseError
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from authlib.oidc.core import CodeIDToken, UserInfo
from joserfc.errors import JoseError as RFCJoseError
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from oidc_adapter.auth.errors import DiscoveryError, IdTokenError, ProviderResponseError

WELL_KNOWN_PATH = "/.well-known/openid-configuration"
ID_TOKEN_ALGORITHMS = ["RS256", "RS384", "RS512", "ES256", "ES384", "PS256"]


class ProviderMetadata(BaseModel):
    """OpenID Provider metadata (discovery document).

    Only the endpoints the adapter uses are typed; everything else the
    provider publishes is kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    userinfo_endpoint: str | None = None
    jwks_uri: str | None = None
    response_types_supported: list[str] = Field(default_factory=list)
    scopes_supported: list[str] = Field(default_factory=list)
    id_token_signing_alg_values_supported: list[str] = Field(default_factory=list)


def discovery_url_for(issuer_url: str) -> str:
    """Return the discovery document URL for an issuer.

    Issuer URLs that already point at a ``.well-known`` document are used
    as-is.

    Examples:
        >>> discovery_url_for("https://idp.example/")
        'https://idp.example/.well-known/openid-configuration'
    """
    if "/.well-known/" in issuer_url:
        return issuer_url
    return f"{issuer_url.rstrip('/')}{WELL_KNOWN_PATH}"


class OIDCClient:
    """Client bound to one discovered provider and one set of credentials.

    Built with :meth:`discover`. Restricted to the response types given at
    construction (``code`` by default).
    """

    def __init__(
        self,
        metadata: ProviderMetadata,
        client_id: str,
        client_secret: str,
        response_types: tuple[str, ...] = ("code",),
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        jwks_cache_ttl: int = 3600,
    ):
        self.metadata = metadata
        self.client_id = client_id
        self.client_secret = client_secret
        self.response_types = tuple(response_types)
        self.jwks_cache_ttl = jwks_cache_ttl

        self._transport = transport
        self._timeout = timeout
        self._jwks: dict[str, Any] | None = None
        self._jwks_cache_time: float = 0
        self._jwt = JsonWebToken(ID_TOKEN_ALGORITHMS)

    @classmethod
    async def discover(
        cls,
        issuer_url: str,
        *,
        client_id: str,
        client_secret: str,
        response_types: tuple[str, ...] = ("code",),
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        jwks_cache_ttl: int = 3600,
    ) -> "OIDCClient":
        """Fetch the provider's discovery document and build a client.

        Args:
            issuer_url: Issuer URL (or full discovery document URL)
            client_id: OAuth client ID
            client_secret: OAuth client secret
            response_types: Response types the client may request
            transport: Optional httpx transport for all provider calls
            timeout: HTTP timeout in seconds
            jwks_cache_ttl: JWKS cache TTL in seconds

        Returns:
            Ready client handle

        Raises:
            httpx.HTTPError: Discovery endpoint unavailable
            DiscoveryError: Document lacks required metadata
        """
        discovery_url = discovery_url_for(issuer_url)
        async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
            response = await client.get(discovery_url, headers={"Accept": "application/json"})
            response.raise_for_status()
            document = response.json()

        try:
            metadata = ProviderMetadata.model_validate(document)
        except ValidationError as e:
            raise DiscoveryError(f"Invalid discovery document at {discovery_url}: {e}") from e

        logger.info(f"Fetched OIDC config from {discovery_url}")
        return cls(
            metadata,
            client_id=client_id,
            client_secret=client_secret,
            response_types=response_types,
            transport=transport,
            timeout=timeout,
            jwks_cache_ttl=jwks_cache_ttl,
        )

    def authorization_url(
        self,
        *,
        redirect_uri: str,
        scope: tuple[str, ...] | list[str],
        state: str | None = None,
        **params: Any,
    ) -> str:
        """Build the authorization endpoint URL.

        The ``state`` parameter is only added when a value is given.
        """
        return prepare_grant_uri(
            self.metadata.authorization_endpoint,
            client_id=self.client_id,
            response_type=" ".join(self.response_types),
            redirect_uri=redirect_uri,
            scope=" ".join(scope),
            state=state,
            **params,
        )

    async def callback(
        self,
        redirect_uri: str,
        code: str,
        *,
        verify_id_token: bool = True,
        leeway: int = 120,
    ) -> dict[str, Any]:
        """Exchange an authorization code at the token endpoint.

        When the response carries an ``id_token`` and ``verify_id_token`` is
        set, its validated claims are stored under ``id_token_claims``.

        Args:
            redirect_uri: Redirect URI used to obtain the code
            code: Authorization code
            verify_id_token: Verify a returned id_token
            leeway: Clock skew tolerance in seconds

        Returns:
            Token response (authlib ``OAuth2Token``)

        Raises:
            authlib.integrations.base_client.OAuthError: Token endpoint error
            IdTokenError: id_token failed verification
            DiscoveryError: id_token returned but no jwks_uri published
        """
        async with self._session(redirect_uri=redirect_uri) as session:
            token = await session.fetch_token(
                self.metadata.token_endpoint,
                grant_type="authorization_code",
                code=code,
            )
        logger.debug(f"Exchanged authorization code at {self.metadata.token_endpoint}")

        if verify_id_token and token.get("id_token"):
            token["id_token_claims"] = await self.verify_id_token(token, leeway=leeway)
        return token

    async def verify_id_token(self, token: dict[str, Any], leeway: int = 120) -> CodeIDToken:
        """Validate the id_token of a token response against the provider JWKS.

        Checks signature, ``iss``, ``aud``, ``exp``, ``iat``, ``azp`` and
        ``at_hash``. An unknown key ID triggers one JWKS refresh.

        Recent authlib releases validate claims through joserfc, older ones
        through ``authlib.jose``; errors from either are raised as
        ``IdTokenError``.

        Raises:
            IdTokenError: Claims or signature invalid, or signing key not in
                the provider JWKS
            DiscoveryError: Provider does not publish a jwks_uri
        """
        jwks = await self._get_jwks()
        try:
            try:
                claims = self._decode_id_token(token, jwks)
            except ValueError:
                logger.warning("Unknown id_token key ID, refreshing JWKS and retrying")
                jwks = await self._get_jwks(force_refresh=True)
                claims = self._decode_id_token(token, jwks)

            claims.validate(leeway=leeway)
        except (JoseError, RFCJoseError, ValueError) as e:
            logger.warning(f"id_token rejected: {e}")
            raise IdTokenError(f"Invalid id_token: {e}") from e

        logger.debug(f"id_token validated for subject: {claims.get('sub')}")
        return claims

    async def userinfo(self, token: dict[str, Any]) -> UserInfo:
        """Fetch user-info with the access token of a token response.

        Raises:
            ProviderResponseError: No userinfo endpoint, no ``sub`` claim, or
                ``sub`` differs from the verified id_token subject
            httpx.HTTPStatusError: Userinfo endpoint returned an error
        """
        if not self.metadata.userinfo_endpoint:
            raise ProviderResponseError("Provider does not publish a userinfo_endpoint")

        async with self._session(token=token) as session:
            response = await session.get(self.metadata.userinfo_endpoint)
            response.raise_for_status()
            user = UserInfo(response.json())

        if not user.get("sub"):
            raise ProviderResponseError("Userinfo response is missing the 'sub' claim")

        claims = token.get("id_token_claims")
        if claims and str(claims.get("sub")) != str(user["sub"]):
            raise ProviderResponseError("Userinfo 'sub' does not match the id_token subject")
        return user

    def _session(self, **kwargs: Any) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self.client_id,
            client_secret=self.client_secret,
            transport=self._transport,
            timeout=self._timeout,
            **kwargs,
        )

    def _decode_id_token(self, token: dict[str, Any], jwks: dict[str, Any]) -> CodeIDToken:
        return self._jwt.decode(
            token["id_token"],
            key=JsonWebKey.import_key_set(jwks),
            claims_cls=CodeIDToken,
            claims_options={
                "iss": {"essential": True, "value": self.metadata.issuer},
                "aud": {"essential": True, "value": self.client_id},
            },
            claims_params={
                "client_id": self.client_id,
                "access_token": token.get("access_token"),
            },
        )

    async def _get_jwks(self, force_refresh: bool = False) -> dict[str, Any]:
        """Fetch JWKS (JSON Web Key Set) from provider.

        Args:
            force_refresh: Force refresh even if cached

        Returns:
            JWKS dictionary

        Raises:
            DiscoveryError: Provider does not publish a jwks_uri
            httpx.HTTPError: JWKS endpoint unavailable
        """
        now = time.time()

        if (
            not force_refresh
            and self._jwks
            and (now - self._jwks_cache_time) < self.jwks_cache_ttl
        ):
            return self._jwks

        if not self.metadata.jwks_uri:
            raise DiscoveryError("Provider does not publish a jwks_uri")

        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.get(self.metadata.jwks_uri)
            response.raise_for_status()
            self._jwks = response.json()
            self._jwks_cache_time = now
            logger.info(f"Refreshed JWKS from {self.metadata.jwks_uri}")
            return self._jwks
