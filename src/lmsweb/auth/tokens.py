"""Authorization code to token exchange."""

import logging

import httpx
from pydantic import ValidationError

from lmsweb.auth.models import TokenPair, TokenRequest
from lmsweb.auth.redirector import VERIFIER_KEY
from lmsweb.auth.storage import Storage
from lmsweb.exceptions import MissingVerifierError, TokenExchangeError
from lmsweb.settings import Settings

logger = logging.getLogger(__name__)


class TokenExchanger:
    """Exchanges an authorization code plus the stored verifier for tokens.

    A code is single-use at the provider, so calling this twice with the
    same code fails the second time. Callers guard against re-entry.
    """

    def __init__(self, settings: Settings, storage: Storage) -> None:
        self._settings = settings
        self._storage = storage

    async def exchange_code_for_token(self, code: str) -> TokenPair:
        """Exchange an authorization code for access and ID tokens.

        The stored verifier is deleted only after a successful exchange.

        Args:
            code: Authorization code from the callback query.

        Returns:
            TokenPair with access_token and id_token.

        Raises:
            MissingVerifierError: No verifier stored; no request is sent.
            TokenExchangeError: Transport failure, non-2xx status or bad payload.
        """
        code_verifier = await self._storage.get_item(VERIFIER_KEY)
        if not code_verifier:
            raise MissingVerifierError()

        token_request = TokenRequest(
            token_endpoint=self._settings.token_endpoint,
            code=code,
            redirect_uri=self._settings.redirect_uri,
            client_id=self._settings.client_id(),
            code_verifier=code_verifier,
        )

        logger.debug("Exchanging authorization code at %s", token_request.token_endpoint)

        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout) as client:
                response = await client.post(
                    token_request.token_endpoint,
                    data=token_request.to_form_data(),
                    headers={
                        "Content-Type": "application/x-www-form-urlencoded",
                        "Accept": "application/json",
                    },
                )
        except httpx.HTTPError as e:
            raise TokenExchangeError(f"HTTP error during token exchange: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.warning("Token exchange failed with %d", response.status_code)
            raise TokenExchangeError(
                f"Token exchange failed with status {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            tokens = TokenPair.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TokenExchangeError(
                f"Invalid token response format: {e}",
                status_code=response.status_code,
            ) from e

        await self._storage.remove_item(VERIFIER_KEY)
        logger.info("Token exchange successful")
        return tokens
