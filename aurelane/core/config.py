"""Client configuration.

Environment variables are loaded from .env file and can be overridden.
All settings have sensible defaults for local development.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    # ==========================================================================
    # Backend API
    # ==========================================================================

    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment: 'development', 'staging', or 'production'.",
    )

    api_base_url: str = Field(
        default="https://aurelane-backend-next.onrender.com/api",
        alias="AURELANE_API_BASE_URL",
    )
    api_timeout_seconds: float = Field(
        default=15.0, alias="AURELANE_API_TIMEOUT_SECONDS", gt=0.0
    )

    # Token and current user survive restarts only when a path is set.
    session_store_path: str | None = Field(
        default=None, alias="AURELANE_SESSION_STORE_PATH"
    )

    # ==========================================================================
    # Request cache TTLs (seconds)
    # ==========================================================================

    default_cache_ttl_seconds: int = Field(
        default=120, alias="CACHE_DEFAULT_TTL_SECONDS", ge=0
    )

    # Gem listings: filters change often, keep it short
    gem_list_cache_ttl_seconds: int = Field(
        default=300, alias="CACHE_GEM_LIST_TTL_SECONDS", ge=0
    )

    # Single gem detail pages
    gem_detail_cache_ttl_seconds: int = Field(
        default=600, alias="CACHE_GEM_DETAIL_TTL_SECONDS", ge=0
    )

    # Categories and zodiac lookups: near-static
    gem_taxonomy_cache_ttl_seconds: int = Field(
        default=1800, alias="CACHE_GEM_TAXONOMY_TTL_SECONDS", ge=0
    )

    # ==========================================================================
    # Checkout
    # ==========================================================================

    default_country: str = Field(default="India", alias="CHECKOUT_DEFAULT_COUNTRY")
    store_name: str = Field(default="Aurelane", alias="CHECKOUT_STORE_NAME")
    payment_gateway_script_url: str = Field(
        default="https://checkout.razorpay.com/v1/checkout.js",
        alias="PAYMENT_GATEWAY_SCRIPT_URL",
    )
    payment_gateway_theme_color: str = Field(
        default="#059669", alias="PAYMENT_GATEWAY_THEME_COLOR"
    )

    # ==========================================================================
    # OpenTelemetry (optional)
    # ==========================================================================

    otel_enabled: bool = Field(default=False, alias="OTEL_ENABLED")
    otel_service_name: str = Field(default="aurelane-client", alias="OTEL_SERVICE_NAME")
    otel_service_version: str = Field(default="0.1.0", alias="OTEL_SERVICE_VERSION")
    otel_exporter_otlp_endpoint: str = Field(
        default="http://localhost:4317", alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_exporter_otlp_headers: str | None = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_HEADERS"
    )

    # ==========================================================================
    # Pydantic Settings Config
    # ==========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @model_validator(mode="after")
    def validate_ttl_ordering(self) -> "Settings":
        """Near-static data must never expire before volatile data."""
        if not (
            self.gem_taxonomy_cache_ttl_seconds
            >= self.gem_detail_cache_ttl_seconds
            >= self.gem_list_cache_ttl_seconds
            >= 0
        ):
            raise ValueError(
                "Cache TTLs must satisfy taxonomy >= detail >= list >= 0 "
                f"(got {self.gem_taxonomy_cache_ttl_seconds}, "
                f"{self.gem_detail_cache_ttl_seconds}, "
                f"{self.gem_list_cache_ttl_seconds})."
            )
        return self

    @model_validator(mode="after")
    def validate_production_security(self) -> "Settings":
        """Bearer tokens must not travel over plain HTTP in production."""
        if self.environment.lower() == "production" and not self.api_base_url.startswith(
            "https://"
        ):
            raise ValueError(
                "AURELANE_API_BASE_URL must use https in production."
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
