"""Application settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lmsweb.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Identity provider
    zitadel_issuer: str = ""
    zitadel_client_id: str = ""

    # Public URLs
    app_url: str = "http://localhost:3000"
    api_url: str = "http://localhost:3008/api"

    # Storage
    data_dir: Path = Path(".lmsweb")
    verifier_ttl_seconds: int = 600
    browser_idle_seconds: int = 86400

    http_timeout: float = 30.0

    # Web server
    host: str = "127.0.0.1"
    port: int = 3000
    cookie_secure: bool = False

    @field_validator("zitadel_issuer", "app_url", "api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def browsers_dir(self) -> Path:
        """Root of the per-browser persisted storage."""
        return self.data_dir / "browsers"

    @property
    def redirect_uri(self) -> str:
        """Fixed callback URL registered with the provider."""
        return f"{self.app_url}/callback"

    @property
    def authorization_endpoint(self) -> str:
        return f"{self._issuer()}/oauth/v2/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self._issuer()}/oauth/v2/token"

    @property
    def end_session_endpoint(self) -> str:
        return f"{self._issuer()}/oidc/v1/end_session"

    def _issuer(self) -> str:
        if not self.zitadel_issuer:
            raise ConfigurationError("ZITADEL_ISSUER is not configured")
        return self.zitadel_issuer

    def client_id(self) -> str:
        """Get the OAuth client id, failing loudly when unset."""
        if not self.zitadel_client_id:
            raise ConfigurationError("ZITADEL_CLIENT_ID is not configured")
        return self.zitadel_client_id


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
