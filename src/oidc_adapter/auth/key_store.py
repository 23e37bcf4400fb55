"""Abstract user/key store interface.

Defines the contract the OIDC provider expects from the host authentication
library. A user owns any number of keys; each key links one external
identity (provider_id, provider_user_id) to exactly one user.

Implementations:
- MemoryKeyStore: in-process dicts (tests, single-process dev)
- FileSystemKeyStore: JSON files on disk (dev/small deployments)
"""

from abc import ABC, abstractmethod
from typing import Any

from oidc_adapter.auth.providers import Key, ProviderKey, User


class KeyStore(ABC):
    """Abstract interface for user and key persistence.

    Storage pattern:
        users: user_id -> attributes
        keys:  (provider_id, provider_user_id) -> user_id
    """

    @abstractmethod
    async def get_key_user(self, provider_id: str, provider_user_id: str) -> User:
        """Get the user linked to an external identity.

        Args:
            provider_id: Provider discriminator
            provider_user_id: User ID at the provider

        Returns:
            Linked user

        Raises:
            KeyNotFoundError: No key exists for the pair
        """
        pass

    @abstractmethod
    async def create_user(
        self,
        key: ProviderKey,
        attributes: dict[str, Any],
        password: str | None = None,
    ) -> User:
        """Create a user together with its first key.

        Args:
            key: External identity for the first key
            attributes: User attributes
            password: Optional key password (None for provider keys)

        Returns:
            Created user

        Raises:
            DuplicateKeyError: Key already linked to a user
        """
        pass

    @abstractmethod
    async def create_key(
        self,
        user_id: str,
        key: ProviderKey,
        password: str | None = None,
    ) -> Key:
        """Link an external identity to an existing user.

        Args:
            user_id: Local user ID
            key: External identity
            password: Optional key password (None for provider keys)

        Returns:
            Created key

        Raises:
            UserNotFoundError: User does not exist
            DuplicateKeyError: Key already linked to a user
        """
        pass

    @abstractmethod
    async def get_user(self, user_id: str) -> User:
        """Get a user by local ID.

        Raises:
            UserNotFoundError: User does not exist
        """
        pass

    @abstractmethod
    async def get_key(self, provider_id: str, provider_user_id: str) -> Key:
        """Get a key by external identity.

        Raises:
            KeyNotFoundError: No key exists for the pair
        """
        pass


def reject_password(password: str | None) -> None:
    """Refuse password keys in stores that only hold provider keys."""
    if password is not None:
        raise ValueError("Password keys are not supported by this key store")
