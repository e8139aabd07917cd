"""Per-browser state owned by the web application."""

import logging
import re
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from lmsweb.auth.callback import ExchangeGuard
from lmsweb.auth.session import SessionStore
from lmsweb.auth.storage import FileStorage, MemoryStorage
from lmsweb.settings import Settings

logger = logging.getLogger(__name__)

_BROWSER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{16,64}$")


def new_browser_id() -> str:
    return secrets.token_urlsafe(24)


def is_valid_browser_id(value: str | None) -> bool:
    return bool(value) and bool(_BROWSER_ID_PATTERN.match(value))


@dataclass
class BrowserContext:
    """Storage, session and exchange guard for one browser."""

    browser_id: str
    transient: MemoryStorage
    persisted: FileStorage
    session: SessionStore
    guard: ExchangeGuard = field(default_factory=ExchangeGuard)
    last_seen: float = 0.0


class BrowserRegistry:
    """Creates browser contexts lazily and forgets idle ones.

    Forgetting a context drops its transient storage (pending verifiers);
    the persisted session stays on disk and is rehydrated on return.
    """

    def __init__(
        self,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._contexts: dict[str, BrowserContext] = {}

    def __len__(self) -> int:
        return len(self._contexts)

    async def get(self, browser_id: str) -> BrowserContext:
        """Get the context for a browser, rehydrating its session on first use."""
        now = self._clock()
        self._prune(now)

        context = self._contexts.get(browser_id)
        if context is None:
            persisted = FileStorage(self._settings.browsers_dir / browser_id)
            context = BrowserContext(
                browser_id=browser_id,
                transient=MemoryStorage(ttl_seconds=self._settings.verifier_ttl_seconds),
                persisted=persisted,
                session=SessionStore(persisted),
            )
            await context.session.rehydrate()
            self._contexts[browser_id] = context

        context.last_seen = now
        return context

    def _prune(self, now: float) -> None:
        idle = [
            browser_id
            for browser_id, context in self._contexts.items()
            if now - context.last_seen > self._settings.browser_idle_seconds
        ]
        for browser_id in idle:
            logger.debug("Forgetting idle browser %s", browser_id)
            del self._contexts[browser_id]
