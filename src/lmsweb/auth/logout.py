"""Provider-side logout (OIDC RP-initiated logout)."""

from lmsweb.auth.models import EndSessionRequest
from lmsweb.settings import Settings


class LogoutRedirector:
    """Builds the end-session URL that terminates the provider session.

    Only the provider half of logout; callers also clear the local
    ``SessionStore``.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def logout(self) -> str:
        request = EndSessionRequest(
            end_session_endpoint=self._settings.end_session_endpoint,
            post_logout_redirect_uri=self._settings.app_url,
            client_id=self._settings.client_id(),
        )
        return request.build_end_session_url()
