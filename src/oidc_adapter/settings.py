"""Application settings using Pydantic Settings."""

from typing import TYPE_CHECKING

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from oidc_adapter.auth.providers import OIDCConfig


class OIDCSettings(BaseSettings):
    """OpenID Connect client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="OIDC__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    issuer_url: str = Field(default="", description="OIDC issuer URL")
    client_id: str = Field(default="", description="OIDC client ID")
    client_secret: str = Field(default="", description="OIDC client secret")
    redirect_uri: str = Field(
        default="http://localhost:8000/oidc/callback",
        description="Redirect URI registered with the provider",
    )
    scope: list[str] = Field(
        default_factory=lambda: ["oidc", "email", "profile"],
        description="Requested scopes",
    )
    response_types: list[str] = Field(
        default_factory=lambda: ["code"],
        description="Response types the client is restricted to",
    )
    verify_id_token: bool = Field(
        default=True, description="Verify id_token returned by the token endpoint"
    )
    id_token_leeway: int = Field(
        default=120, description="Clock skew tolerance for id_token claims (seconds)"
    )
    jwks_cache_ttl: int = Field(default=3600, description="JWKS cache TTL in seconds")
    http_timeout: float = Field(
        default=30.0, description="Timeout for provider HTTP calls (seconds)"
    )

    def to_config(self) -> "OIDCConfig":
        """Build the immutable adapter configuration from these settings."""
        from oidc_adapter.auth.providers import OIDCConfig

        return OIDCConfig(**self.model_dump())


class KeyStoreSettings(BaseSettings):
    """User/key store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KEY_STORE__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: str = Field(
        default="memory",
        description="Key store backend: memory | filesystem",
    )
    path: str = Field(
        default="~/.oidc-adapter/store",
        description="Root directory for the filesystem backend",
    )


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="OIDC_ADAPTER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    api_reload: bool = Field(default=False, description="Auto-reload on code changes")

    # State cookie used by the login/callback routes
    state_cookie_name: str = Field(default="oidc_state", description="State cookie name")
    state_cookie_secure: bool = Field(
        default=True, description="Only send the state cookie over HTTPS"
    )
    state_cookie_max_age: int = Field(
        default=600, description="State cookie lifetime in seconds"
    )

    # Nested
    oidc: OIDCSettings = Field(default_factory=OIDCSettings)
    key_store: KeyStoreSettings = Field(default_factory=KeyStoreSettings)


settings = Settings()
