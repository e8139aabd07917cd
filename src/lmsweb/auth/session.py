"""Persisted session state for a browser.

The store is an explicit object owned by the web application, one per
browser. Hydration is modelled separately from authentication: until the
persisted entry has been read, the session is ``UNKNOWN``, not signed out.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import StrEnum

from pydantic import ValidationError

from lmsweb.auth.models import PersistedSession, User
from lmsweb.auth.storage import Storage

logger = logging.getLogger(__name__)

STORE_NAME = "lms-auth"


class Hydration(StrEnum):
    """Whether persisted state has been restored yet, and what it held.

    Records the outcome of the restore only. Later ``set_auth`` or
    ``logout`` calls change ``is_authenticated`` but not this value.
    """

    UNKNOWN = "unknown"
    RESTORED = "restored"
    EMPTY = "empty"


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot of a browser session."""

    user: User | None = None
    access_token: str | None = None
    is_authenticated: bool = False
    hydration: Hydration = Hydration.UNKNOWN

    @property
    def hydrated(self) -> bool:
        return self.hydration is not Hydration.UNKNOWN


Listener = Callable[[SessionState], None]


class SessionStore:
    """Holds the signed-in user and access token with persistence."""

    def __init__(self, storage: Storage, name: str = STORE_NAME) -> None:
        self._storage = storage
        self.name = name
        self._state = SessionState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def hydrated(self) -> bool:
        return self._state.hydrated

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with every new state.

        Returns:
            Function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_auth(self, user: User, token: str) -> None:
        self._set(user=user, access_token=token, is_authenticated=True)

    def logout(self) -> None:
        """Clear local credentials. The provider session is untouched."""
        self._set(user=None, access_token=None, is_authenticated=False)

    def set_has_hydrated(self, value: bool) -> None:
        """Mark persisted state as loaded. Only the first ``True`` has effect.

        The hydration outcome is fixed here; read ``is_authenticated`` for
        the current sign-in status.
        """
        if not value or self._state.hydrated:
            return
        hydration = Hydration.RESTORED if self._state.is_authenticated else Hydration.EMPTY
        self._set(hydration=hydration)

    async def rehydrate(self) -> SessionState:
        """Restore state from storage and signal hydration."""
        if self._state.hydrated:
            return self._state

        persisted = await self._load()
        if persisted is not None and persisted.is_authenticated:
            self._set(
                user=persisted.user,
                access_token=persisted.access_token,
                is_authenticated=True,
            )
            logger.debug("Restored session %s", self.name)

        self.set_has_hydrated(True)
        return self._state

    async def persist(self) -> None:
        """Write the current session to storage."""
        persisted = PersistedSession(
            user=self._state.user,
            access_token=self._state.access_token,
            is_authenticated=self._state.is_authenticated,
        )
        await self._storage.set_item(self.name, persisted.model_dump_json())

    async def _load(self) -> PersistedSession | None:
        content = await self._storage.get_item(self.name)
        if content is None:
            return None

        try:
            return PersistedSession.model_validate_json(content)
        except (ValidationError, ValueError) as e:
            logger.warning("Ignoring unreadable session %s: %s", self.name, e)
            return None

    def _set(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)
