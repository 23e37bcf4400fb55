"""OpenID Connect authentication adapter.

This module links identities from an external OIDC provider to users in a
host user/key store:
- Provider discovery and client construction (authlib)
- Authorization URLs with anti-forgery state
- Code exchange, id_token verification and user-info
- Session descriptors that create users or link keys for one subject

Store backends:
- MemoryKeyStore: in-process (tests, dev)
- FileSystemKeyStore: JSON files on disk
"""

from oidc_adapter.auth.errors import (
    DiscoveryError,
    DuplicateKeyError,
    IdTokenError,
    KeyNotFoundError,
    KeyStoreError,
    OIDCAdapterError,
    ProviderNotInitializedError,
    ProviderResponseError,
    UserNotFoundError,
)
from oidc_adapter.auth.key_store import KeyStore
from oidc_adapter.auth.key_store_fs import FileSystemKeyStore
from oidc_adapter.auth.key_store_memory import MemoryKeyStore
from oidc_adapter.auth.oidc_client import OIDCClient, ProviderMetadata
from oidc_adapter.auth.provider_oidc import (
    PROVIDER_ID,
    OIDCProvider,
    generate_state,
    oidc,
)
from oidc_adapter.auth.providers import (
    GENERATE_STATE,
    AuthorizationURL,
    AuthorizationURLWithState,
    Key,
    OAuthProvider,
    OIDCConfig,
    ProviderKey,
    ProviderState,
    User,
)
from oidc_adapter.auth.session import ProviderSession

__all__ = [
    "AuthorizationURL",
    "AuthorizationURLWithState",
    "DiscoveryError",
    "DuplicateKeyError",
    "FileSystemKeyStore",
    "GENERATE_STATE",
    "IdTokenError",
    "Key",
    "KeyNotFoundError",
    "KeyStore",
    "KeyStoreError",
    "MemoryKeyStore",
    "OAuthProvider",
    "OIDCAdapterError",
    "OIDCClient",
    "OIDCConfig",
    "OIDCProvider",
    "PROVIDER_ID",
    "ProviderKey",
    "ProviderMetadata",
    "ProviderNotInitializedError",
    "ProviderResponseError",
    "ProviderSession",
    "ProviderState",
    "User",
    "UserNotFoundError",
    "generate_state",
    "oidc",
]
