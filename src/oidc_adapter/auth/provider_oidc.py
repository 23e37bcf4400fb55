"""OIDC external provider (Okta, Auth0, Keycloak, Microsoft Entra ID, Google, etc.).

Links identities from an external OpenID Connect provider to local users
held by a KeyStore. The provider:
1. Discovers the issuer configuration (``init``)
2. Builds authorization URLs with an anti-forgery state
3. Exchanges the callback code, fetches user-info and looks up the local
   user keyed by ("oidc", sub)

Persisting the state across the redirect and comparing it with the value in
the callback query string is the caller's job.
"""

import asyncio

import httpx
from authlib.common.security import generate_token
from loguru import logger

from oidc_adapter.auth.errors import KeyNotFoundError, ProviderNotInitializedError
from oidc_adapter.auth.key_store import KeyStore
from oidc_adapter.auth.oidc_client import OIDCClient
from oidc_adapter.auth.providers import (
    GENERATE_STATE,
    AuthorizationURL,
    AuthorizationURLWithState,
    OAuthProvider,
    OIDCConfig,
    ProviderKey,
    ProviderState,
)
from oidc_adapter.auth.session import ProviderSession

PROVIDER_ID = "oidc"
STATE_LENGTH = 43


def generate_state() -> str:
    """Generate a random URL-safe state value."""
    return generate_token(STATE_LENGTH)


class OIDCProvider(OAuthProvider):
    """External OIDC provider bound to a host key store.

    Construction performs no network I/O; call :meth:`init` (or use
    :func:`oidc`) before building URLs or validating callbacks.

    Configuration:
    - client_id / client_secret: OAuth client credentials
    - redirect_uri: Callback URL registered with the provider
    - issuer_url: Issuer used for discovery
    - scope: Requested scopes (default: oidc, email, profile)

    Examples:
        Keycloak:
            issuer: https://sso.example.com/realms/{realm}

        Google:
            issuer: https://accounts.google.com

        Microsoft Entra ID:
            issuer: https://login.microsoftonline.com/{tenant}/v2.0
    """

    def __init__(
        self,
        store: KeyStore,
        config: OIDCConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize OIDC provider.

        Args:
            store: Host user/key store
            config: Client configuration
            transport: Optional httpx transport for all provider calls
        """
        self.store = store
        self.config = config
        self._transport = transport
        self._client: OIDCClient | None = None
        self._state = ProviderState.UNINITIALIZED
        self._init_lock = asyncio.Lock()

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def client(self) -> OIDCClient | None:
        return self._client

    async def init(self) -> OIDCClient:
        """Discover the issuer and build the client handle.

        Idempotent: once a client exists it is returned without another
        discovery request. Concurrent callers wait for the same discovery.
        A failed discovery leaves the provider uninitialized.

        Returns:
            Client handle

        Raises:
            httpx.HTTPError: Discovery endpoint unavailable
            DiscoveryError: Discovery document invalid
        """
        if self._client is not None:
            return self._client

        async with self._init_lock:
            if self._client is None:
                self._state = ProviderState.INITIALIZING
                try:
                    self._client = await OIDCClient.discover(
                        self.config.issuer_url,
                        client_id=self.config.client_id,
                        client_secret=self.config.client_secret,
                        response_types=self.config.response_types,
                        transport=self._transport,
                        timeout=self.config.http_timeout,
                        jwks_cache_ttl=self.config.jwks_cache_ttl,
                    )
                finally:
                    self._state = (
                        ProviderState.READY
                        if self._client is not None
                        else ProviderState.UNINITIALIZED
                    )
                logger.info(f"OIDC provider ready (issuer: {self._client.metadata.issuer})")

        return self._client

    def get_authorization_url(
        self, state: str | None = GENERATE_STATE
    ) -> AuthorizationURL | AuthorizationURLWithState:
        """Build the provider authorization URL.

        Args:
            state: Omit to generate a fresh state. Pass a string to use it
                verbatim. Pass None (or "") to send no state at all.

        Returns:
            ``AuthorizationURLWithState(url, state)`` when a state is embedded,
            ``AuthorizationURL(url)`` otherwise

        Raises:
            ProviderNotInitializedError: ``init`` has not completed
        """
        client = self._require_client()

        if state is GENERATE_STATE:
            state = generate_state()

        url = client.authorization_url(
            redirect_uri=self.config.redirect_uri,
            scope=self.config.scope,
            state=state or None,
        )
        logger.debug(f"Built authorization URL (state: {'yes' if state else 'no'})")

        if not state:
            return AuthorizationURL(url)
        return AuthorizationURLWithState(url, state)

    async def validate_callback(self, code: str) -> ProviderSession:
        """Exchange the callback code and resolve the local user.

        Args:
            code: Authorization code from the callback query string

        Returns:
            ProviderSession for the provider subject

        Raises:
            ProviderNotInitializedError: ``init`` has not completed
            authlib.integrations.base_client.OAuthError: Token exchange failed
            httpx.HTTPError: Provider unreachable
            Exception: Any key store lookup failure other than KeyNotFoundError
        """
        client = self._require_client()

        token = await client.callback(
            self.config.redirect_uri,
            code,
            verify_id_token=self.config.verify_id_token,
            leeway=self.config.id_token_leeway,
        )
        userinfo = await client.userinfo(token)
        provider_key = ProviderKey(
            provider_id=PROVIDER_ID,
            provider_user_id=str(userinfo["sub"]),
        )

        try:
            existing_user = await self.store.get_key_user(
                provider_key.provider_id, provider_key.provider_user_id
            )
        except KeyNotFoundError:
            existing_user = None

        logger.debug(
            f"Callback validated for {provider_key.key_id} "
            f"(existing user: {existing_user.user_id if existing_user else None})"
        )
        return ProviderSession(
            existing_user=existing_user,
            provider_user=userinfo,
            provider_key=provider_key,
            store=self.store,
        )

    def get_provider_name(self) -> str:
        """Get provider name.

        Returns:
            Provider identifier
        """
        return PROVIDER_ID

    def _require_client(self) -> OIDCClient:
        if self._client is None:
            raise ProviderNotInitializedError()
        return self._client


async def oidc(
    store: KeyStore,
    config: OIDCConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> OIDCProvider:
    """Create an OIDC provider and wait for discovery.

    Example:
        >>> provider = await oidc(store, config)
        >>> url, state = provider.get_authorization_url()
    """
    provider = OIDCProvider(store, config, transport=transport)
    await provider.init()
    return provider
