"""Authorization redirect for the PKCE sign-in flow."""

import logging

from lmsweb.auth.models import AuthAction, AuthorizationRequest
from lmsweb.auth.pkce import generate_pkce
from lmsweb.auth.storage import Storage
from lmsweb.settings import Settings

logger = logging.getLogger(__name__)

VERIFIER_KEY = "code_verifier"


class AuthRedirector:
    """Starts a sign-in by storing a fresh verifier and building the authorize URL."""

    def __init__(self, settings: Settings, storage: Storage) -> None:
        self._settings = settings
        self._storage = storage

    async def initiate_auth(self, action: AuthAction | str) -> str:
        """Prepare a new authorization attempt.

        Args:
            action: "signup" or "login"; selects the provider's prompt hint.

        Returns:
            Authorization URL the browser must navigate to.
        """
        action = AuthAction(action)
        code_verifier, code_challenge = generate_pkce()

        # Replaces any verifier left over from an abandoned attempt
        await self._storage.set_item(VERIFIER_KEY, code_verifier)

        request = AuthorizationRequest(
            authorization_endpoint=self._settings.authorization_endpoint,
            client_id=self._settings.client_id(),
            redirect_uri=self._settings.redirect_uri,
            code_challenge=code_challenge,
            prompt=action.prompt,
        )
        logger.debug("Starting %s flow with prompt=%s", action.value, action.prompt)
        return request.build_authorization_url()
