"""In-memory user/key store.

Keeps users and keys in process-local dicts. Data is lost on restart.
Callers always receive copies, so mutating a returned model never changes
what is stored.
"""

import uuid
from typing import Any

from loguru import logger

from oidc_adapter.auth.errors import DuplicateKeyError, KeyNotFoundError, UserNotFoundError
from oidc_adapter.auth.key_store import KeyStore, reject_password
from oidc_adapter.auth.providers import Key, ProviderKey, User


class MemoryKeyStore(KeyStore):
    """Dict-backed key store."""

    def __init__(self):
        self._users: dict[str, User] = {}
        self._keys: dict[tuple[str, str], Key] = {}

    async def get_key_user(self, provider_id: str, provider_user_id: str) -> User:
        key = await self.get_key(provider_id, provider_user_id)
        return await self.get_user(key.user_id)

    async def create_user(
        self,
        key: ProviderKey,
        attributes: dict[str, Any],
        password: str | None = None,
    ) -> User:
        reject_password(password)
        if (key.provider_id, key.provider_user_id) in self._keys:
            raise DuplicateKeyError()

        user = User(user_id=uuid.uuid4().hex, attributes=dict(attributes))
        self._users[user.user_id] = user
        self._keys[(key.provider_id, key.provider_user_id)] = Key(
            provider_id=key.provider_id,
            provider_user_id=key.provider_user_id,
            user_id=user.user_id,
        )
        logger.info(f"Created user {user.user_id} with key {key.key_id}")
        return user.model_copy(deep=True)

    async def create_key(
        self,
        user_id: str,
        key: ProviderKey,
        password: str | None = None,
    ) -> Key:
        reject_password(password)
        if user_id not in self._users:
            raise UserNotFoundError()
        if (key.provider_id, key.provider_user_id) in self._keys:
            raise DuplicateKeyError()

        created = Key(
            provider_id=key.provider_id,
            provider_user_id=key.provider_user_id,
            user_id=user_id,
        )
        self._keys[(key.provider_id, key.provider_user_id)] = created
        logger.info(f"Linked key {key.key_id} to user {user_id}")
        return created.model_copy()

    async def get_user(self, user_id: str) -> User:
        try:
            return self._users[user_id].model_copy(deep=True)
        except KeyError:
            raise UserNotFoundError() from None

    async def get_key(self, provider_id: str, provider_user_id: str) -> Key:
        try:
            return self._keys[(provider_id, provider_user_id)].model_copy()
        except KeyError:
            raise KeyNotFoundError() from None

