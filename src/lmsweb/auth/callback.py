"""OAuth callback handling.

Turns the provider's redirect back to ``/callback`` into a signed-in
session, or into an error the user can recover from by starting over.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from jose import JWTError

from lmsweb.api.client import UsersApi
from lmsweb.auth.models import CallbackParams, User
from lmsweb.auth.session import SessionStore
from lmsweb.auth.tokens import TokenExchanger
from lmsweb.exceptions import (
    ApiError,
    AuthError,
    MissingCodeError,
    ProfileFetchError,
    ProviderError,
    TokenExchangeError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

ROLE_SELECTION_PATH = "/select-role"
HOME_PATH = "/courses"


class ExchangePhase(StrEnum):
    """Lifecycle of one authorization code."""

    PENDING = "pending"
    CONSUMING = "consuming"
    DONE = "done"


class ExchangeGuard:
    """Runs the exchange for each authorization code at most once.

    Duplicate callbacks for a code that is being (or has been) exchanged
    await the first attempt's outcome instead of starting another one.
    Only the most recent ``max_attempts`` finished codes are remembered.
    """

    def __init__(self, max_attempts: int = 8) -> None:
        self._max_attempts = max_attempts
        self._attempts: dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._attempts)

    def phase(self, code: str) -> ExchangePhase:
        attempt = self._attempts.get(code)
        if attempt is None:
            return ExchangePhase.PENDING
        return ExchangePhase.DONE if attempt.done() else ExchangePhase.CONSUMING

    async def run_once(self, code: str, factory: Callable[[], Awaitable[T]]) -> T:
        attempt = self._attempts.get(code)
        if attempt is None:
            attempt = asyncio.ensure_future(factory())
            attempt.add_done_callback(_retrieve_exception)
            self._attempts[code] = attempt
            self._evict()
        else:
            logger.debug("Authorization code already %s, joining attempt", self.phase(code))

        # Shielded so a dropped request does not cancel the shared attempt
        return await asyncio.shield(attempt)

    def _evict(self) -> None:
        excess = len(self._attempts) - self._max_attempts
        if excess <= 0:
            return
        finished = [code for code, attempt in self._attempts.items() if attempt.done()]
        for code in finished[:excess]:
            del self._attempts[code]


def _retrieve_exception(attempt: asyncio.Task) -> None:
    # Every caller may have disconnected before the attempt finished
    if not attempt.cancelled():
        attempt.exception()


@dataclass(frozen=True)
class CallbackResult:
    """Outcome of a callback: where to go next, or what went wrong."""

    destination: str | None = None
    error: str | None = None
    user: User | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CallbackHandler:
    """Completes sign-in for one browser."""

    def __init__(
        self,
        exchanger: TokenExchanger,
        users_api: UsersApi,
        session_store: SessionStore,
        guard: ExchangeGuard,
    ) -> None:
        self._exchanger = exchanger
        self._users_api = users_api
        self._session_store = session_store
        self._guard = guard

    async def handle(self, params: CallbackParams) -> CallbackResult:
        """Process callback parameters.

        Never raises for sign-in failures; they are returned as
        ``CallbackResult.error``.
        """
        try:
            if params.error:
                raise ProviderError(params.error, params.error_description)
            if not params.code:
                raise MissingCodeError()

            code = params.code
            user = await self._guard.run_once(code, lambda: self._complete(code))
        except TokenExchangeError as e:
            logger.error("Token exchange failed: %s", e)
            detail = f" (status {e.status_code})" if e.status_code else ""
            return CallbackResult(error=f"Authentication failed{detail}")
        except ProfileFetchError as e:
            logger.error("Profile fetch failed: %s", e)
            return CallbackResult(error="Authentication failed")
        except AuthError as e:
            logger.warning("Sign-in rejected: %s", e)
            return CallbackResult(error=str(e))

        destination = ROLE_SELECTION_PATH if user.needs_role else HOME_PATH
        return CallbackResult(destination=destination, user=user)

    async def _complete(self, code: str) -> User:
        tokens = await self._exchanger.exchange_code_for_token(code)

        try:
            subject = tokens.id_claims().get("sub")
        except JWTError:
            subject = None
        logger.debug("Token exchange returned subject %s", subject)

        try:
            user = await self._users_api.me(tokens.access_token)
        except ApiError as e:
            raise ProfileFetchError(f"Failed to fetch user profile: {e}") from e

        self._session_store.set_auth(user, tokens.access_token)
        await self._session_store.persist()
        logger.info("Signed in user %s", user.id)
        return user
