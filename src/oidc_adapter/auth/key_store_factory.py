"""Factory for user/key store backends.

Creates the KeyStore implementation selected in settings.
"""

from loguru import logger

from oidc_adapter.auth.key_store import KeyStore
from oidc_adapter.auth.key_store_fs import FileSystemKeyStore
from oidc_adapter.auth.key_store_memory import MemoryKeyStore
from oidc_adapter.settings import settings


# Singleton instance
_key_store_instance: KeyStore | None = None


def get_key_store() -> KeyStore:
    """Get key store instance (singleton).

    Returns:
        KeyStore implementation based on KEY_STORE__BACKEND

    Raises:
        ValueError: If the backend name is invalid
    """
    global _key_store_instance

    if _key_store_instance is not None:
        return _key_store_instance

    backend = settings.key_store.backend.lower()

    if backend == "memory":
        logger.info("Initializing MemoryKeyStore")
        _key_store_instance = MemoryKeyStore()
    elif backend == "filesystem":
        logger.info("Initializing FileSystemKeyStore")
        _key_store_instance = FileSystemKeyStore(base_path=settings.key_store.path)
    else:
        raise ValueError(
            f"Invalid key store backend: {backend}. "
            f"Valid options: memory, filesystem"
        )

    return _key_store_instance


def reset_key_store() -> None:
    """Drop the cached store so the next call re-reads settings."""
    global _key_store_instance
    _key_store_instance = None
