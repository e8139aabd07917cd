"""Authentication module for lmsweb."""

from lmsweb.auth.logout import LogoutRedirector
from lmsweb.auth.models import AuthAction, Role, TokenPair, User
from lmsweb.auth.redirector import AuthRedirector
from lmsweb.auth.session import Hydration, SessionState, SessionStore
from lmsweb.auth.storage import FileStorage, MemoryStorage, Storage
from lmsweb.auth.tokens import TokenExchanger

__all__ = [
    "AuthAction",
    "AuthRedirector",
    "FileStorage",
    "Hydration",
    "LogoutRedirector",
    "MemoryStorage",
    "Role",
    "SessionState",
    "SessionStore",
    "Storage",
    "TokenExchanger",
    "TokenPair",
    "User",
]
