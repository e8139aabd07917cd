"""aiohttp application serving the sign-in flow."""

import logging

from aiohttp import web

from lmsweb.api.client import ApiClient, UsersApi
from lmsweb.auth.callback import CallbackHandler
from lmsweb.auth.logout import LogoutRedirector
from lmsweb.auth.models import AuthAction, CallbackParams, Role
from lmsweb.auth.redirector import AuthRedirector
from lmsweb.auth.tokens import TokenExchanger
from lmsweb.exceptions import ApiError
from lmsweb.settings import Settings, get_settings
from lmsweb.web.context import (
    BrowserContext,
    BrowserRegistry,
    is_valid_browser_id,
    new_browser_id,
)
from lmsweb.web.pages import (
    render_courses,
    render_error,
    render_landing,
    render_select_role,
)

logger = logging.getLogger(__name__)

BROWSER_COOKIE = "lms_browser"

SETTINGS_KEY = web.AppKey("settings", Settings)
REGISTRY_KEY = web.AppKey("registry", BrowserRegistry)
USERS_API_KEY = web.AppKey("users_api", UsersApi)


def _redirect(location: str) -> web.Response:
    """Full-page navigation for the browser."""
    return web.Response(status=302, headers={"Location": location})


def _html(body: str, status: int = 200) -> web.Response:
    return web.Response(text=body, status=status, content_type="text/html")


def _browser(request: web.Request) -> BrowserContext:
    return request["browser"]


@web.middleware
async def browser_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Attach the browser's context, issuing a browser cookie when missing."""
    browser_id = request.cookies.get(BROWSER_COOKIE)
    is_new = not is_valid_browser_id(browser_id)
    if is_new:
        browser_id = new_browser_id()

    request["browser"] = await request.app[REGISTRY_KEY].get(browser_id)
    response = await handler(request)

    if is_new:
        # No max_age: the cookie lives for the browser session only
        response.set_cookie(
            BROWSER_COOKIE,
            browser_id,
            httponly=True,
            samesite="Lax",
            secure=request.app[SETTINGS_KEY].cookie_secure,
        )
    return response


async def landing(request: web.Request) -> web.Response:
    if _browser(request).session.state.is_authenticated:
        return _redirect("/courses")
    return _html(render_landing())


async def signup(request: web.Request) -> web.Response:
    return await _start_auth(request, AuthAction.SIGNUP)


async def login(request: web.Request) -> web.Response:
    return await _start_auth(request, AuthAction.LOGIN)


async def _start_auth(request: web.Request, action: AuthAction) -> web.Response:
    redirector = AuthRedirector(request.app[SETTINGS_KEY], _browser(request).transient)
    return _redirect(await redirector.initiate_auth(action))


async def callback(request: web.Request) -> web.Response:
    context = _browser(request)
    handler = CallbackHandler(
        exchanger=TokenExchanger(request.app[SETTINGS_KEY], context.transient),
        users_api=request.app[USERS_API_KEY],
        session_store=context.session,
        guard=context.guard,
    )

    result = await handler.handle(CallbackParams.from_query(request.query))
    if not result.ok:
        return _html(render_error(result.error), status=400)
    return _redirect(result.destination)


async def select_role_page(request: web.Request) -> web.Response:
    state = _browser(request).session.state
    if not state.access_token:
        return _redirect("/")
    if state.user and state.user.role:
        return _redirect("/courses")
    return _html(render_select_role())


async def select_role(request: web.Request) -> web.Response:
    session = _browser(request).session
    state = session.state
    if not state.access_token or state.user is None:
        return _redirect("/")

    form = await request.post()
    try:
        role = Role(form.get("role"))
    except ValueError:
        return _html(render_error("Unknown role"), status=400)

    try:
        role = await request.app[USERS_API_KEY].set_role(role, state.access_token)
    except ApiError as e:
        logger.error("Failed to set role: %s", e)
        return _html(render_error("Failed to set role"), status=502)

    session.set_auth(state.user.model_copy(update={"role": role}), state.access_token)
    await session.persist()
    return _redirect("/courses")


async def courses(request: web.Request) -> web.Response:
    session = _browser(request).session
    state = session.state
    # Unknown hydration is not the same as signed out
    if not state.hydrated:
        state = await session.rehydrate()
    if not state.is_authenticated or state.user is None:
        return _redirect("/")
    return _html(render_courses(state.user))


async def logout(request: web.Request) -> web.Response:
    session = _browser(request).session
    session.logout()
    await session.persist()
    return _redirect(LogoutRedirector(request.app[SETTINGS_KEY]).logout())


def create_app(settings: Settings | None = None) -> web.Application:
    """Build the web application."""
    settings = settings or get_settings()

    app = web.Application(middlewares=[browser_middleware])
    app[SETTINGS_KEY] = settings
    app[REGISTRY_KEY] = BrowserRegistry(settings)
    app[USERS_API_KEY] = UsersApi(ApiClient(settings.api_url, timeout=settings.http_timeout))

    app.router.add_get("/", landing)
    app.router.add_get("/signup", signup)
    app.router.add_get("/login", login)
    app.router.add_get("/callback", callback)
    app.router.add_get("/select-role", select_role_page)
    app.router.add_post("/select-role", select_role)
    app.router.add_get("/courses", courses)
    app.router.add_get("/logout", logout)
    return app
