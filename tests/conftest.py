"""Shared test fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from lmsweb.auth.models import Role, User
from lmsweb.settings import Settings

BROWSER_ID = "browser-id-0123456789abcdef"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a fake provider and a temp data dir."""
    return Settings(
        zitadel_issuer="https://auth.example.com",
        zitadel_client_id="client-123",
        app_url="https://lms.example.com",
        api_url="https://api.example.com/api",
        data_dir=tmp_path / "data",
        verifier_ttl_seconds=600,
    )


@pytest.fixture
def new_user() -> User:
    """User who has not picked a role yet."""
    return User(id="u-1", email="ada@example.com", name="Ada", role=None)


@pytest.fixture
def coach() -> User:
    """User with the coach role."""
    return User(id="u-2", email="grace@example.com", name="Grace", role=Role.COACH)


def make_response(status_code: int = 200, json_data=None, text: str = "") -> MagicMock:
    """Build a fake httpx.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


def mock_async_client(mock_client_cls: MagicMock, response: MagicMock) -> AsyncMock:
    """Wire a patched httpx.AsyncClient to return response from post/request."""
    mock_instance = AsyncMock()
    mock_client_cls.return_value.__aenter__.return_value = mock_instance
    mock_instance.post.return_value = response
    mock_instance.request.return_value = response
    return mock_instance
