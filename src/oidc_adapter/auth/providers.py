"""OAuth provider interface and shared models.

This module defines the types exchanged between an external identity
provider adapter and the host user/key store:
- OIDCConfig: immutable client configuration
- ProviderKey / User / Key: the host store's identity model
- AuthorizationURL / AuthorizationURLWithState: authorization URL results
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SCOPE = ["oidc", "email", "profile"]
DEFAULT_RESPONSE_TYPES = ["code"]


class _GenerateState:
    """Marker for "no state argument given"."""

    def __repr__(self) -> str:
        return "GENERATE_STATE"


GENERATE_STATE: Any = _GenerateState()


class OIDCConfig(BaseModel):
    """OpenID Connect client configuration.

    Frozen after construction. ``scope`` and ``response_types`` default to
    the values the provider adapter has always used.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(description="OAuth client ID")
    client_secret: str = Field(description="OAuth client secret")
    redirect_uri: str = Field(description="Redirect URI registered with the provider")
    issuer_url: str = Field(description="Issuer URL used for discovery")
    scope: tuple[str, ...] = Field(default=tuple(DEFAULT_SCOPE))
    response_types: tuple[str, ...] = Field(default=tuple(DEFAULT_RESPONSE_TYPES))
    verify_id_token: bool = Field(default=True)
    id_token_leeway: int = Field(default=120, description="Clock skew in seconds")
    jwks_cache_ttl: int = Field(default=3600, description="JWKS cache TTL in seconds")
    http_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")


class ProviderKey(BaseModel):
    """External identity: provider discriminator plus provider user ID."""

    model_config = ConfigDict(frozen=True)

    provider_id: str = Field(description="Provider discriminator (e.g. 'oidc')")
    provider_user_id: str = Field(description="User ID at the provider (sub claim)")

    @property
    def key_id(self) -> str:
        return f"{self.provider_id}:{self.provider_user_id}"


class User(BaseModel):
    """Local user held by the host store."""

    user_id: str = Field(description="Local user ID")
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        description="Application-defined user attributes",
    )


class Key(BaseModel):
    """Link between an external identity and a local user."""

    provider_id: str
    provider_user_id: str
    user_id: str
    password_defined: bool = False

    @property
    def key_id(self) -> str:
        return f"{self.provider_id}:{self.provider_user_id}"


class AuthorizationURL(NamedTuple):
    """Authorization URL built without a state parameter."""

    url: str


class AuthorizationURLWithState(NamedTuple):
    """Authorization URL and the state value embedded in it."""

    url: str
    state: str


class ProviderState(str, Enum):
    """Lifecycle of a provider instance."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class OAuthProvider(ABC):
    """Abstract OAuth provider interface.

    Providers discover their upstream configuration in ``init``, hand out
    authorization URLs, and turn an authorization code into a
    ``ProviderSession`` bound to the host store.
    """

    @abstractmethod
    async def init(self) -> Any:
        """Discover the upstream provider and build the client handle.

        Returns:
            The client handle (cached after the first call)
        """
        pass

    @abstractmethod
    def get_authorization_url(
        self, state: str | None = GENERATE_STATE
    ) -> AuthorizationURL | AuthorizationURLWithState:
        """Build the URL the end user is redirected to.

        ``GENERATE_STATE`` asks for a fresh random state, None for no state.
        """
        pass

    @abstractmethod
    async def validate_callback(self, code: str) -> Any:
        """Exchange an authorization code and resolve the local user."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get provider identifier.

        Returns:
            Provider name (e.g., 'oidc')
        """
        pass
