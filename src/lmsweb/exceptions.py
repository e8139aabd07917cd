"""Exception hierarchy for lmsweb."""


class LmsWebError(Exception):
    """Base exception for all lmsweb errors."""


class ConfigurationError(LmsWebError):
    """Settings are missing or invalid."""


class ApiError(LmsWebError):
    """Backend API returned a non-success response."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class AuthError(LmsWebError):
    """Base exception for sign-in errors."""


class ProviderError(AuthError):
    """Identity provider redirected back with an error."""

    def __init__(self, error: str, description: str | None = None) -> None:
        self.error = error
        self.description = description
        message = f"{error}: {description}" if description else error
        super().__init__(message)


class MissingCodeError(AuthError):
    """Callback reached without an authorization code or an error."""

    def __init__(self) -> None:
        super().__init__("No authorization code received")


class MissingVerifierError(AuthError):
    """No PKCE code verifier stored for this browser."""

    def __init__(self) -> None:
        super().__init__(
            "No code verifier found. The sign-in was probably started in another "
            "tab or browser, or has expired. Start again from the home page."
        )


class TokenExchangeError(AuthError):
    """Token endpoint rejected the authorization code."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ProfileFetchError(AuthError):
    """User profile could not be loaded after a successful token exchange."""
