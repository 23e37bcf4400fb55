"""Session descriptor returned from a validated OIDC callback."""

from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from oidc_adapter.auth.key_store import KeyStore
from oidc_adapter.auth.providers import Key, ProviderKey, User


@dataclass(frozen=True)
class ProviderSession:
    """Outcome of a callback, bound to the identity it discovered.

    ``create_user`` and ``create_key`` always use ``provider_key`` captured
    during the callback, so a session can only ever link the subject it was
    created for. The caller inspects ``existing_user`` and decides which of
    the two (if any) to call.
    """

    existing_user: User | None
    provider_user: dict[str, Any]
    provider_key: ProviderKey
    store: KeyStore = field(repr=False)

    async def create_user(self, attributes: dict[str, Any] | None = None) -> User:
        """Create a local user whose first key is this session's identity."""
        logger.debug(f"Creating user for {self.provider_key.key_id}")
        return await self.store.create_user(
            key=self.provider_key,
            attributes=attributes or {},
        )

    async def create_key(self, user_id: str) -> Key:
        """Link this session's identity to an existing local user."""
        logger.debug(f"Linking {self.provider_key.key_id} to user {user_id}")
        return await self.store.create_key(user_id, self.provider_key, password=None)
