"""oidc-adapter: link OpenID Connect identities to local users."""

from oidc_adapter.auth import (
    AuthorizationURL,
    AuthorizationURLWithState,
    OIDCConfig,
    OIDCProvider,
    ProviderSession,
    oidc,
)
from oidc_adapter.version import __version__

__all__ = [
    "AuthorizationURL",
    "AuthorizationURLWithState",
    "OIDCConfig",
    "OIDCProvider",
    "ProviderSession",
    "__version__",
    "oidc",
]
