"""Browser-style key/value storage for sign-in state.

``MemoryStorage`` is the transient, per-browser store that holds the PKCE
verifier between the authorization redirect and the callback.
``FileStorage`` is the persisted store the session survives reloads in.
"""

import logging
import re
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import aiofiles

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


class Storage(Protocol):
    """Async key/value storage holding string values."""

    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...

    async def keys(self) -> list[str]: ...


class MemoryStorage:
    """In-process storage with optional per-item expiry.

    Expired items read as absent and are dropped on the next access.
    """

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._items: dict[str, tuple[str, float | None]] = {}

    async def get_item(self, key: str) -> str | None:
        self._purge_expired()
        item = self._items.get(key)
        return item[0] if item else None

    async def set_item(self, key: str, value: str) -> None:
        expires_at = self._clock() + self._ttl if self._ttl is not None else None
        self._items[key] = (value, expires_at)

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    async def keys(self) -> list[str]:
        self._purge_expired()
        return list(self._items)

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [
            key
            for key, (_, expires_at) in self._items.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            logger.debug("Dropping expired storage item %s", key)
            del self._items[key]


class FileStorage:
    """Persisted storage with one JSON file per key."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    async def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None

        try:
            async with aiofiles.open(path) as f:
                return await f.read()
        except OSError as e:
            logger.warning("Failed to read %s: %s", path, e)
            return None

    async def set_item(self, key: str, value: str) -> None:
        """Write an item with owner-only permissions."""
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)

        # Write to temp file first for atomic operation
        temp_path = path.with_suffix(".tmp")
        async with aiofiles.open(temp_path, "w") as f:
            await f.write(value)

        temp_path.chmod(0o600)
        temp_path.replace(path)

    async def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    async def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
