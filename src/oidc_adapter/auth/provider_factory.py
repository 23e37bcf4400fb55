"""OIDC provider factory.

Creates the provider instance from settings and caches it for the process.
"""

from loguru import logger

from oidc_adapter.auth.key_store import KeyStore
from oidc_adapter.auth.key_store_factory import get_key_store
from oidc_adapter.auth.provider_oidc import OIDCProvider, oidc
from oidc_adapter.settings import settings


async def get_auth_provider(store: KeyStore | None = None) -> OIDCProvider:
    """Create an initialized provider from settings.

    Args:
        store: Key store to bind (uses the configured store if None)

    Returns:
        Ready OIDCProvider

    Raises:
        ValueError: Required OIDC settings are missing
    """
    missing = [
        name
        for name in ("issuer_url", "client_id", "client_secret", "redirect_uri")
        if not getattr(settings.oidc, name)
    ]
    if missing:
        raise ValueError(
            "Missing OIDC settings: "
            + ", ".join(f"OIDC__{name.upper()}" for name in missing)
        )

    logger.info(f"Initializing OIDC provider (issuer: {settings.oidc.issuer_url})")
    return await oidc(store or get_key_store(), settings.oidc.to_config())


# Global provider instance (lazy-initialized)
_provider_instance: OIDCProvider | None = None


async def get_provider_instance() -> OIDCProvider:
    """Get or create the global provider instance.

    Lazy-initializes the provider on first call and caches it for
    subsequent calls. A failed discovery is not cached.

    Returns:
        Cached, initialized provider
    """
    global _provider_instance

    if _provider_instance is None:
        _provider_instance = await get_auth_provider()

    return _provider_instance


def reset_provider_instance() -> None:
    """Drop the cached provider so the next call re-reads settings."""
    global _provider_instance
    _provider_instance = None
