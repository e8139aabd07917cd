"""Web application for the sign-in flow."""

from lmsweb.web.app import create_app

__all__ = ["create_app"]
