"""PKCE (Proof Key for Code Exchange) utilities for OAuth 2.0."""

import base64
import hashlib
import secrets


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    """Generate a PKCE code verifier.

    Returns:
        32 random bytes, base64url encoded without padding (43 chars).
    """
    return _b64url(secrets.token_bytes(32))


def generate_code_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for a verifier.

    Returns:
        base64url(SHA256(verifier)) per RFC 7636, without padding.
    """
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return _b64url(digest)


def generate_pkce() -> tuple[str, str]:
    """Generate PKCE code verifier and challenge.

    Returns:
        Tuple of (code_verifier, code_challenge).
    """
    verifier = generate_code_verifier()
    return verifier, generate_code_challenge(verifier)
