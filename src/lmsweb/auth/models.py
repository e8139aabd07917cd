"""Authentication data models."""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import urlencode

from jose import jwt
from pydantic import BaseModel, ConfigDict

SCOPES = "openid profile email"


class Role(str, Enum):
    """Platform roles a user can pick after first sign-in."""

    STUDENT = "student"
    COACH = "coach"


class AuthAction(str, Enum):
    """Why the user is being sent to the provider."""

    SIGNUP = "signup"
    LOGIN = "login"

    @property
    def prompt(self) -> str:
        """OIDC prompt hint for this action."""
        return "create" if self is AuthAction.SIGNUP else "login"


class User(BaseModel):
    """User record returned by the backend."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: str
    name: str = ""
    role: Role | None = None

    @property
    def needs_role(self) -> bool:
        return self.role is None

    @property
    def display_name(self) -> str:
        return self.name or self.email


class TokenPair(BaseModel):
    """Tokens returned by a successful authorization code exchange."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    id_token: str
    token_type: str = "Bearer"
    expires_in: int | None = None

    def id_claims(self) -> dict[str, Any]:
        """Decode the ID token payload without verifying its signature.

        Only for diagnostics; the backend validates the access token.
        """
        return jwt.get_unverified_claims(self.id_token)


class PersistedSession(BaseModel):
    """Session subset written to persisted storage."""

    user: User | None = None
    access_token: str | None = None
    is_authenticated: bool = False


@dataclass(frozen=True)
class AuthorizationRequest:
    """Authorization request parameters for the PKCE flow."""

    authorization_endpoint: str
    client_id: str
    redirect_uri: str
    code_challenge: str
    prompt: str
    scope: str = SCOPES
    code_challenge_method: str = "S256"

    def build_authorization_url(self) -> str:
        """Build the complete authorization URL."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": self.scope,
            "code_challenge": self.code_challenge,
            "code_challenge_method": self.code_challenge_method,
            "prompt": self.prompt,
        }
        return f"{self.authorization_endpoint}?{urlencode(params)}"


@dataclass(frozen=True)
class TokenRequest:
    """Authorization code exchange parameters (RFC 6749 Section 4.1.3)."""

    token_endpoint: str
    code: str
    redirect_uri: str
    client_id: str
    code_verifier: str
    grant_type: str = "authorization_code"

    def to_form_data(self) -> dict[str, str]:
        """Convert to form data for an application/x-www-form-urlencoded POST."""
        return {
            "grant_type": self.grant_type,
            "client_id": self.client_id,
            "code": self.code,
            "redirect_uri": self.redirect_uri,
            "code_verifier": self.code_verifier,
        }


@dataclass(frozen=True)
class EndSessionRequest:
    """RP-initiated logout parameters."""

    end_session_endpoint: str
    post_logout_redirect_uri: str
    client_id: str

    def build_end_session_url(self) -> str:
        params = {
            "post_logout_redirect_uri": self.post_logout_redirect_uri,
            "client_id": self.client_id,
        }
        return f"{self.end_session_endpoint}?{urlencode(params)}"


@dataclass(frozen=True)
class CallbackParams:
    """Query parameters the provider sends to the callback URL."""

    code: str | None = None
    error: str | None = None
    error_description: str | None = None

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "CallbackParams":
        return cls(
            code=query.get("code") or None,
            error=query.get("error") or None,
            error_description=query.get("error_description") or None,
        )
