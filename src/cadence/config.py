"""
Cadence Configuration Module.

Handles application settings, feature flags, and environment configuration.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    """Feature flags for enabling/disabling tag governance modules."""

    model_config = SettingsConfigDict(env_prefix="FEATURE_")

    hierarchy: bool = True
    permissions: bool = True
    templates: bool = True
    audit: bool = True
    versions: bool = True
    analytics: bool = True
    notifications: bool = True

    def to_dict(self) -> dict[str, bool]:
        """Return feature flags as dictionary for health endpoint."""
        return {
            "hierarchy": self.hierarchy,
            "permissions": self.permissions,
            "templates": self.templates,
            "audit": self.audit,
            "versions": self.versions,
            "analytics": self.analytics,
            "notifications": self.notifications,
        }


class SupabaseSettings(BaseSettings):
    """Supabase configuration for the relational store."""

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    url: str = Field(default="https://demo.supabase.co", description="Supabase project URL")
    service_role_key: str = Field(default="demo-service-role-key", description="Supabase service role key")


class GovernanceSettings(BaseSettings):
    """Tag governance behaviour and storage selection."""

    model_config = SettingsConfigDict(env_prefix="GOVERNANCE_")

    storage_backend: Literal["memory", "supabase"] = Field(
        default="memory",
        description="Where hierarchy, permissions, audit, templates and versions live",
    )
    snapshot_path: str | None = Field(
        default=None,
        description="Optional JSON snapshot file for the in-memory store (e.g. uploads/governance.json)",
    )
    correlation_limit: int = Field(default=5, ge=1, description="Max related tags returned by the analyzer")
    audit_page_limit: int = Field(default=500, ge=1, description="Upper bound for audit listing size")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_log_level: str = "INFO"

    # Auth
    auth_jwt_secret: str = Field(
        default="dev-jwt-secret-change-me",
        validation_alias="AUTH_JWT_SECRET",
    )
    auth_jwt_algorithm: str = Field(default="HS256", validation_alias="AUTH_JWT_ALGORITHM")
    auth_access_token_ttl_seconds: int = Field(
        default=3600,
        validation_alias="AUTH_ACCESS_TOKEN_TTL_SECONDS",
    )
    auth_insecure_dev_bypass: bool = Field(
        default=False,
        description="If true (and not production), requests without a Bearer token act as a development admin. Local use only.",
        validation_alias="AUTH_INSECURE_DEV_BYPASS",
    )

    # Nested settings
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    governance: GovernanceSettings = Field(default_factory=GovernanceSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
