"""
Configuration system with Pydantic Settings and validation.

Every value can be supplied through the environment using the ``SWR_`` prefix
and ``__`` as the nesting delimiter, e.g. ``SWR_CONTROL_PLANE__BASE_URL`` or
``SWR_AUTH__CLIENT_SECRET``.
"""

from enum import Enum
from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

UPSTREAM_CATALOG_URL = (
    "https://repo.maven.apache.org/maven2/org/springframework/cloud/stream/app/"
    "stream-applications-descriptor/2025.0.1/"
    "stream-applications-descriptor-2025.0.1.rabbit-apps-maven-repo-url.properties"
)


class FailurePolicy(str, Enum):
    """How bulk catalog import reacts to a failed registration."""

    FAIL_FAST = "fail_fast"
    BEST_EFFORT = "best_effort"


def _validate_http_url(v: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return v.rstrip("/")


class ControlPlaneConfig(BaseModel):
    """Connection to the control plane REST API."""

    base_url: str = Field("http://localhost:9393", description="Control plane root URL")
    timeout: float = Field(30.0, gt=0, description="HTTP timeout in seconds")
    page_size: int = Field(2000, gt=0, description="Page size for listing endpoints")
    transport: str = Field("http", description="Transport binding name")
    max_connections: int = Field(20, gt=0)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v):
        return _validate_http_url(v)


class AuthConfig(BaseModel):
    """OAuth2 client-credentials settings."""

    enabled: bool = Field(False)
    token_url: str | None = Field(None, description="OAuth2 token endpoint")
    client_id: str | None = Field(None)
    client_secret: SecretStr | None = Field(None)
    scope: str | None = Field(None)
    registration_id: str = Field("scdf", description="Cache key for the credential")
    expiry_skew_seconds: float = Field(30.0, ge=0)
    default_token_lifetime: float = Field(300.0, gt=0)
    timeout: float = Field(10.0, gt=0)

    @model_validator(mode="after")
    def check_required_when_enabled(self):
        if self.enabled and not (self.token_url and self.client_id):
            raise ValueError("auth.token_url and auth.client_id are required when auth is enabled")
        return self


class CatalogConfig(BaseModel):
    """Bulk application catalog."""

    url: str = Field(UPSTREAM_CATALOG_URL)
    failure_policy: FailurePolicy = Field(FailurePolicy.FAIL_FAST)
    timeout: float = Field(60.0, gt=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        return _validate_http_url(v)


class ObservabilityConfig(BaseModel):
    """Configuration for observability and monitoring."""

    enable_tracing: bool = Field(False)
    enable_metrics: bool = Field(True)
    log_level: str = Field("INFO")

    # OpenTelemetry configuration
    otlp_endpoint: str | None = Field(None)
    service_name: str = Field("streamwright")
    service_version: str = Field("0.3.0")


class APIConfig(BaseModel):
    """Configuration for the HTTP tool surface."""

    host: str = Field("0.0.0.0")
    port: int = Field(8080, gt=0, le=65535)
    enable_docs: bool = Field(True)


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="SWR_", env_nested_delimiter="__", case_sensitive=False, extra="ignore"
    )

    control_plane: ControlPlaneConfig = Field(default_factory=ControlPlaneConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    api: APIConfig = Field(default_factory=APIConfig)

    environment: str = Field(
        "development", description="Environment: development, staging, production"
    )
    debug: bool = Field(False)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
