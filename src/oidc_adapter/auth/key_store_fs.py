"""Filesystem-based user/key storage implementation.

Stores users and keys as JSON files on disk.
Suitable for development, testing, and small deployments.
"""

import asyncio
import json
import os
import uuid
from pathlib import Path
from typing import Any
from urllib.parse import quote

from loguru import logger

from oidc_adapter.auth.errors import DuplicateKeyError, KeyNotFoundError, UserNotFoundError
from oidc_adapter.auth.key_store import KeyStore, reject_password
from oidc_adapter.auth.providers import Key, ProviderKey, User


class FileSystemKeyStore(KeyStore):
    """Filesystem-based key store.

    Storage layout:
        {base_path}/users/{user_id}.json
        {base_path}/keys/{provider_id}/{provider_user_id}.json

    Provider user IDs are percent-encoded so any ``sub`` value maps to a
    single file name. File I/O runs in a worker thread.

    Example:
        ~/.oidc-adapter/store/keys/oidc/248289761001.json

    Thread-safe: No (use file locking for concurrent writes)
    """

    def __init__(self, base_path: str = "~/.oidc-adapter/store"):
        """Initialize filesystem key store.

        Args:
            base_path: Root directory for user and key files
        """
        self.base_path = Path(os.path.expanduser(base_path))
        logger.info(f"FileSystemKeyStore initialized: {self.base_path}")

    async def get_key_user(self, provider_id: str, provider_user_id: str) -> User:
        key = await self.get_key(provider_id, provider_user_id)
        return await self.get_user(key.user_id)

    async def create_user(
        self,
        key: ProviderKey,
        attributes: dict[str, Any],
        password: str | None = None,
    ) -> User:
        """Create a user and its first key.

        The key file is written after the user file; if that write fails the
        user file is removed again.
        """
        reject_password(password)
        key_path = self._key_path(key.provider_id, key.provider_user_id)
        if await asyncio.to_thread(key_path.exists):
            raise DuplicateKeyError()

        user = User(user_id=uuid.uuid4().hex, attributes=dict(attributes))
        user_path = self._user_path(user.user_id)
        await asyncio.to_thread(self._write, user_path, user.model_dump())

        linked = Key(
            provider_id=key.provider_id,
            provider_user_id=key.provider_user_id,
            user_id=user.user_id,
        )
        try:
            await asyncio.to_thread(self._write, key_path, linked.model_dump())
        except OSError:
            await asyncio.to_thread(user_path.unlink, missing_ok=True)
            raise

        logger.info(f"Created user {user.user_id} with key {key.key_id}")
        return user

    async def create_key(
        self,
        user_id: str,
        key: ProviderKey,
        password: str | None = None,
    ) -> Key:
        reject_password(password)
        if not await asyncio.to_thread(self._user_path(user_id).exists):
            raise UserNotFoundError()

        key_path = self._key_path(key.provider_id, key.provider_user_id)
        if await asyncio.to_thread(key_path.exists):
            raise DuplicateKeyError()

        created = Key(
            provider_id=key.provider_id,
            provider_user_id=key.provider_user_id,
            user_id=user_id,
        )
        await asyncio.to_thread(self._write, key_path, created.model_dump())
        logger.info(f"Linked key {key.key_id} to user {user_id}")
        return created

    async def get_user(self, user_id: str) -> User:
        data = await asyncio.to_thread(self._read, self._user_path(user_id))
        if data is None:
            raise UserNotFoundError()
        return User.model_validate(data)

    async def get_key(self, provider_id: str, provider_user_id: str) -> Key:
        data = await asyncio.to_thread(self._read, self._key_path(provider_id, provider_user_id))
        if data is None:
            raise KeyNotFoundError()
        return Key.model_validate(data)

    async def list_user_keys(self, user_id: str) -> list[Key]:
        """List all keys linked to a user.

        Args:
            user_id: Local user ID

        Returns:
            Keys owned by the user
        """
        return await asyncio.to_thread(self._scan_keys, user_id)

    def _scan_keys(self, user_id: str) -> list[Key]:
        keys_dir = self.base_path / "keys"
        if not keys_dir.exists():
            return []

        keys = []
        for path in keys_dir.glob("*/*.json"):
            data = self._read(path)
            if data and data.get("user_id") == user_id:
                keys.append(Key.model_validate(data))
        return keys

    def _read(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None

        with open(path, "r") as f:
            return json.load(f)

    def _write(self, path: Path, value: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(path, "w") as f:
                json.dump(value, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            raise

    def _user_path(self, user_id: str) -> Path:
        return self.base_path / "users" / f"{quote(user_id, safe='')}.json"

    def _key_path(self, provider_id: str, provider_user_id: str) -> Path:
        """Get path to key file.

        Args:
            provider_id: Provider discriminator
            provider_user_id: User ID at the provider

        Returns:
            Path to JSON file
        """
        return (
            self.base_path
            / "keys"
            / quote(provider_id, safe="")
            / f"{quote(provider_user_id, safe='')}.json"
        )
