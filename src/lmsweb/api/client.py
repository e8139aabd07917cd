"""HTTP client for the LMS backend API."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from lmsweb.auth.models import Role, User
from lmsweb.exceptions import ApiError

logger = logging.getLogger(__name__)


class ApiClient:
    """JSON request helper for the backend REST API."""

    def __init__(self, base_url: str, timeout: float = 30.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: Any = None,
        token: str | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ApiError: On transport failure or a non-2xx response.
        """
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, headers=headers, json=body)
        except httpx.HTTPError as e:
            raise ApiError(f"Request to {endpoint} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise ApiError(_error_message(response), status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"Malformed response from {endpoint}", status_code=response.status_code
            ) from e


def _error_message(response: httpx.Response) -> str:
    """Extract the backend's error message, falling back to the status."""
    try:
        data = response.json()
    except ValueError:
        return "Request failed"
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return f"HTTP {response.status_code}"


class UsersApi:
    """Current-user endpoints."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def me(self, token: str) -> User:
        """Get the current user, creating it on first sign-in."""
        data = await self._client.request("/users/me", token=token)
        try:
            return User.model_validate(data["user"])
        except (KeyError, TypeError, ValidationError) as e:
            raise ApiError(f"Malformed user response: {e}") from e

    async def set_role(self, role: Role | str, token: str) -> Role:
        """Assign the user's role, returning the role the backend stored."""
        role = Role(role)
        data = await self._client.request(
            "/users/set-role",
            method="POST",
            body={"role": role.value},
            token=token,
        )
        try:
            return Role(data.get("role", role.value))
        except (AttributeError, ValueError) as e:
            raise ApiError(f"Malformed set-role response: {e}") from e
