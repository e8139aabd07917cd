"""Backend API access."""

from lmsweb.api.client import ApiClient, UsersApi

__all__ = ["ApiClient", "UsersApi"]
