"""End-to-end tests for the web application."""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from aiohttp.test_utils import TestClient, TestServer
from conftest import BROWSER_ID, make_response, mock_async_client

from lmsweb.auth.models import Role
from lmsweb.auth.session import SessionStore
from lmsweb.auth.storage import FileStorage
from lmsweb.exceptions import ApiError
from lmsweb.web.app import BROWSER_COOKIE, REGISTRY_KEY, USERS_API_KEY, create_app


def _make_app(settings, users_api=None):
    app = create_app(settings)
    app[USERS_API_KEY] = users_api or AsyncMock()
    return app


def _client(app) -> TestClient:
    client = TestClient(TestServer(app))
    client.session.cookie_jar.update_cookies({BROWSER_COOKIE: BROWSER_ID})
    return client


def _token_response():
    return make_response(200, {"access_token": "T", "id_token": "I"})


class TestBrowserCookie:
    """Test browser identification."""

    @pytest.mark.asyncio
    async def test_issues_cookie_to_new_browser(self, settings):
        async with TestClient(TestServer(_make_app(settings))) as client:
            resp = await client.get("/")

            assert resp.status == 200
            assert BROWSER_COOKIE in resp.cookies

    @pytest.mark.asyncio
    async def test_keeps_existing_cookie(self, settings):
        async with _client(_make_app(settings)) as client:
            resp = await client.get("/")

            assert BROWSER_COOKIE not in resp.cookies


class TestLanding:
    """Test the landing page."""

    @pytest.mark.asyncio
    async def test_signed_out_sees_landing(self, settings):
        async with _client(_make_app(settings)) as client:
            resp = await client.get("/")
            body = await resp.text()

            assert "Get Started" in body
            assert 'href="/login"' in body

    @pytest.mark.asyncio
    async def test_signed_in_is_sent_to_courses(self, settings, coach):
        store = SessionStore(FileStorage(settings.browsers_dir / BROWSER_ID))
        store.set_auth(coach, "T")
        await store.persist()

        async with _client(_make_app(settings)) as client:
            resp = await client.get("/", allow_redirects=False)

            assert resp.status == 302
            assert resp.headers["Location"] == "/courses"


class TestStartAuth:
    """Test /signup and /login."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("path", "prompt"), [("/signup", "create"), ("/login", "login")])
    async def test_redirects_to_provider(self, settings, path, prompt):
        async with _client(_make_app(settings)) as client:
            resp = await client.get(path, allow_redirects=False)

            assert resp.status == 302
            location = urlparse(resp.headers["Location"])
            assert location.netloc == "auth.example.com"
            assert location.path == "/oauth/v2/authorize"
            params = parse_qs(location.query)
            assert params["prompt"] == [prompt]
            assert params["code_challenge_method"] == ["S256"]
            assert params["redirect_uri"] == ["https://lms.example.com/callback"]

    @pytest.mark.asyncio
    async def test_stores_verifier_for_browser(self, settings):
        app = _make_app(settings)
        async with _client(app) as client:
            await client.get("/signup", allow_redirects=False)

            context = await app[REGISTRY_KEY].get(BROWSER_ID)
            assert await context.transient.get_item("code_verifier")


class TestCallback:
    """Test /callback."""

    @pytest.mark.asyncio
    async def test_provider_error_shows_error_page(self, settings):
        async with _client(_make_app(settings)) as client:
            with patch("httpx.AsyncClient") as mock_client:
                resp = await client.get("/callback?error=access_denied")

            body = await resp.text()
            assert resp.status == 400
            assert "access_denied" in body
            assert "Back to Home" in body
            mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_code(self, settings):
        async with _client(_make_app(settings)) as client:
            resp = await client.get("/callback")

            assert resp.status == 400
            assert "No authorization code received" in await resp.text()

    @pytest.mark.asyncio
    async def test_callback_without_signup_reports_missing_verifier(self, settings):
        async with _client(_make_app(settings)) as client:
            with patch("httpx.AsyncClient") as mock_client:
                resp = await client.get("/callback?code=abc123")

            assert resp.status == 400
            assert "code verifier" in await resp.text()
            mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_escapes_provider_error(self, settings):
        async with _client(_make_app(settings)) as client:
            resp = await client.get("/callback", params={"error": "<script>x</script>"})

            body = await resp.text()
            assert "<script>x" not in body
            assert "&lt;script&gt;" in body


class TestFullFlow:
    """Sign up, pick a role, browse, log out."""

    @pytest.mark.asyncio
    async def test_signup_to_logout(self, settings, new_user):
        users_api = AsyncMock()
        users_api.me.return_value = new_user
        users_api.set_role.return_value = Role.STUDENT
        app = _make_app(settings, users_api)

        async with _client(app) as client:
            resp = await client.get("/signup", allow_redirects=False)
            assert resp.status == 302

            with patch("httpx.AsyncClient") as mock_client:
                mock_instance = mock_async_client(mock_client, _token_response())
                resp = await client.get("/callback?code=abc123", allow_redirects=False)

            assert resp.status == 302
            assert resp.headers["Location"] == "/select-role"
            form = mock_instance.post.call_args.kwargs["data"]
            assert form["code"] == "abc123"
            assert len(form["code_verifier"]) == 43
            users_api.me.assert_awaited_once_with("T")

            resp = await client.get("/select-role")
            assert "Choose Your Role" in await resp.text()

            resp = await client.post(
                "/select-role", data={"role": "student"}, allow_redirects=False
            )
            assert resp.status == 302
            assert resp.headers["Location"] == "/courses"
            users_api.set_role.assert_awaited_once_with(Role.STUDENT, "T")

            resp = await client.get("/courses")
            body = await resp.text()
            assert "Ada (student)" in body
            assert "Browse Courses" in body

            resp = await client.get("/logout", allow_redirects=False)
            assert resp.status == 302
            assert resp.headers["Location"].startswith(
                "https://auth.example.com/oidc/v1/end_session?"
            )

            resp = await client.get("/courses", allow_redirects=False)
            assert resp.headers["Location"] == "/"

    @pytest.mark.asyncio
    async def test_returning_user_goes_to_courses(self, settings, coach):
        users_api = AsyncMock()
        users_api.me.return_value = coach

        async with _client(_make_app(settings, users_api)) as client:
            await client.get("/login", allow_redirects=False)
            with patch("httpx.AsyncClient") as mock_client:
                mock_async_client(mock_client, _token_response())
                resp = await client.get("/callback?code=abc123", allow_redirects=False)

            assert resp.headers["Location"] == "/courses"
            resp = await client.get("/courses")
            assert "+ Course" in await resp.text()

    @pytest.mark.asyncio
    async def test_session_survives_restart(self, settings, coach):
        users_api = AsyncMock()
        users_api.me.return_value = coach

        async with _client(_make_app(settings, users_api)) as client:
            await client.get("/login", allow_redirects=False)
            with patch("httpx.AsyncClient") as mock_client:
                mock_async_client(mock_client, _token_response())
                await client.get("/callback?code=abc123", allow_redirects=False)

        async with _client(_make_app(settings, users_api)) as client:
            resp = await client.get("/courses", allow_redirects=False)
            assert resp.status == 200
            assert "Grace (coach)" in await resp.text()


class TestSelectRole:
    """Test role selection edge cases."""

    @pytest.mark.asyncio
    async def test_signed_out_is_sent_home(self, settings):
        async with _client(_make_app(settings)) as client:
            resp = await client.get("/select-role", allow_redirects=False)
            assert resp.headers["Location"] == "/"

    @pytest.mark.asyncio
    async def test_unknown_role(self, settings, new_user):
        store = SessionStore(FileStorage(settings.browsers_dir / BROWSER_ID))
        store.set_auth(new_user, "T")
        await store.persist()
        users_api = AsyncMock()

        async with _client(_make_app(settings, users_api)) as client:
            resp = await client.post("/select-role", data={"role": "admin"})

            assert resp.status == 400
            assert "Unknown role" in await resp.text()
            users_api.set_role.assert_not_called()

    @pytest.mark.asyncio
    async def test_backend_failure(self, settings, new_user):
        store = SessionStore(FileStorage(settings.browsers_dir / BROWSER_ID))
        store.set_auth(new_user, "T")
        await store.persist()
        users_api = AsyncMock()
        users_api.set_role.side_effect = ApiError("boom", status_code=500)

        async with _client(_make_app(settings, users_api)) as client:
            resp = await client.post("/select-role", data={"role": "coach"})

            assert resp.status == 502
            assert "Failed to set role" in await resp.text()

    @pytest.mark.asyncio
    async def test_unrecognised_role_in_response(self, settings, new_user):
        store = SessionStore(FileStorage(settings.browsers_dir / BROWSER_ID))
        store.set_auth(new_user, "T")
        await store.persist()
        app = create_app(settings)

        async with _client(app) as client:
            with patch("httpx.AsyncClient") as mock_client:
                mock_async_client(mock_client, make_response(200, {"role": "admin"}))
                resp = await client.post("/select-role", data={"role": "student"})

            assert resp.status == 502
            assert "Failed to set role" in await resp.text()
            context = await app[REGISTRY_KEY].get(BROWSER_ID)
            assert context.session.state.user.role is None
