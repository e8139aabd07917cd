"""lmsweb - sign-in and session layer for the LMS web application."""

__version__ = "0.1.0"
