"""Exception hierarchy for the OIDC adapter.

Subclass hierarchy::

    OIDCAdapterError
    +-- ProviderNotInitializedError
    +-- DiscoveryError
    +-- ProviderResponseError
    |   +-- IdTokenError
    +-- KeyStoreError
        +-- KeyNotFoundError
        +-- DuplicateKeyError
        +-- UserNotFoundError

Network failures (httpx) and token endpoint errors (authlib ``OAuthError``)
are not wrapped and reach the caller as raised by those libraries. id_token
verification failures are raised as ``IdTokenError`` whichever JOSE backend
authlib delegates to.
"""


class OIDCAdapterError(Exception):
    """Base exception for all adapter errors.

    Every subclass carries a stable ``code`` string. It is used as the
    default message so callers comparing ``str(exc)`` keep working, but
    code should branch on the exception type.
    """

    code: str = "OIDC_ADAPTER_ERROR"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)


class ProviderNotInitializedError(OIDCAdapterError):
    """Raised when the provider is used before discovery completed."""

    code = "OIDC_CLIENT_NOT_INITIALIZED"


class DiscoveryError(OIDCAdapterError):
    """Raised when the discovery document is missing required fields."""

    code = "OIDC_DISCOVERY_FAILED"


class ProviderResponseError(OIDCAdapterError):
    """Raised when the provider returns an unusable user-info response."""

    code = "OIDC_INVALID_PROVIDER_RESPONSE"


class IdTokenError(ProviderResponseError):
    """Raised when the id_token fails signature or claims validation."""

    code = "OIDC_INVALID_ID_TOKEN"


class KeyStoreError(OIDCAdapterError):
    """Base class for user/key store conditions."""

    code = "AUTH_STORE_ERROR"


class KeyNotFoundError(KeyStoreError):
    """No key exists for the (provider_id, provider_user_id) pair."""

    code = "AUTH_INVALID_KEY_ID"


class DuplicateKeyError(KeyStoreError):
    """A key for the (provider_id, provider_user_id) pair already exists."""

    code = "AUTH_DUPLICATE_KEY_ID"


class UserNotFoundError(KeyStoreError):
    """The referenced local user does not exist."""

    code = "AUTH_INVALID_USER_ID"
