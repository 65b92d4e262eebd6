"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Control-plane database connection settings.

    Environment variables:
        TENANTRY_DB_HOST: Database host (default: localhost)
        TENANTRY_DB_PORT: Database port (default: 5432)
        TENANTRY_DB_DATABASE: Database name (default: tenantry)
        TENANTRY_DB_USERNAME: Database user (default: tenantry)
        TENANTRY_DB_PASSWORD: Database password (required in production)
        TENANTRY_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        TENANTRY_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTRY_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="tenantry", description="Database name")
    username: str = Field(default="tenantry", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class TenancySettings(BaseSettings):
    """Settings for tenant database provisioning.

    Environment variables:
        TENANTRY_TENANT_POOL_SIZE: Pooled connections per tenant (default: 5)
        TENANTRY_TENANT_POOL_MAX_OVERFLOW: Extra connections under burst (default: 5)
        TENANTRY_TENANT_POOL_TIMEOUT_SECONDS: Wait for a pooled connection (default: 30)
        TENANTRY_TENANT_CONNECT_TIMEOUT_SECONDS: Connect timeout (default: 10)
        TENANTRY_TENANT_STATEMENT_TIMEOUT_SECONDS: Server-side statement timeout
            applied to tenant sessions, including migrations (default: 60)
        TENANTRY_TENANT_PROVISION_TIMEOUT_SECONDS: Upper bound for one
            connect + migrate + seed cycle (default: 300)
        TENANTRY_TENANT_BOOTSTRAP_CONCURRENCY: Tenants provisioned in parallel
            at startup (default: 4)
        TENANTRY_TENANT_BOOTSTRAP_DEADLINE_SECONDS: Deadline for the whole
            tenant phase of startup (default: 120)
        TENANTRY_TENANT_FAIL_ON_PARTIAL_BOOTSTRAP: Refuse to start when any
            tenant failed to provision (default: false)
        TENANTRY_TENANT_RECONCILE_INTERVAL_SECONDS: How often registered
            tenants are checked against the control plane for soft deletes;
            0 disables the check (default: 60)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTRY_TENANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    pool_size: int = Field(default=5, ge=1, le=20)
    pool_max_overflow: int = Field(default=5, ge=0, le=20)
    pool_timeout_seconds: float = Field(default=30.0, gt=0)
    connect_timeout_seconds: float = Field(default=10.0, gt=0)
    statement_timeout_seconds: float = Field(default=60.0, gt=0)
    provision_timeout_seconds: float = Field(default=300.0, gt=0)
    bootstrap_concurrency: int = Field(default=4, ge=1, le=64)
    bootstrap_deadline_seconds: float = Field(default=120.0, gt=0)
    fail_on_partial_bootstrap: bool = Field(default=False)
    reconcile_interval_seconds: float = Field(default=60.0, ge=0)
    migrations_version_table: str = Field(default="alembic_version")

    @model_validator(mode="after")
    def validate_timeouts(self) -> "TenancySettings":
        """Validate that a single provision can finish before its own deadline."""
        if self.provision_timeout_seconds < self.connect_timeout_seconds:
            raise ValueError(
                f"provision_timeout_seconds ({self.provision_timeout_seconds}) must "
                f"be >= connect_timeout_seconds ({self.connect_timeout_seconds})"
            )
        return self


class AuthSettings(BaseSettings):
    """Identity token settings.

    Tokens are issued by the external identity service; this service only
    verifies them and reads the tenant claim.

    Environment variables:
        TENANTRY_AUTH_JWT_SECRET: Static verification key (HMAC secret or PEM
            public key), used when no OIDC issuer is configured
        TENANTRY_AUTH_OIDC_ISSUER_URL: OIDC issuer whose JWKS verifies tokens
        TENANTRY_AUTH_OIDC_AUDIENCE: Expected audience claim, if any
        TENANTRY_AUTH_JWKS_CACHE_TTL_SECONDS: JWKS cache lifetime (default: 86400)
        TENANTRY_AUTH_JWT_ALGORITHMS: Accepted algorithms (default: ["HS256"])
        TENANTRY_AUTH_TENANT_CLAIM: Claim carrying the tenant id (default: tenant_pid)
        TENANTRY_AUTH_SUBJECT_CLAIM: Claim carrying the caller id (default: sub)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTRY_AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    jwt_secret: SecretStr = Field(default=SecretStr(""))
    jwt_algorithms: list[str] = Field(default_factory=lambda: ["HS256"])
    oidc_issuer_url: str | None = Field(default=None)
    oidc_audience: str | None = Field(default=None)
    jwks_cache_ttl_seconds: int = Field(default=86400, ge=0)
    tenant_claim: str = Field(default="tenant_pid")
    subject_claim: str = Field(default="sub")


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Tenantry API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def tenancy(self) -> TenancySettings:
        """Get tenancy settings."""
        return get_tenancy_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings."""
    return TenancySettings()


@lru_cache
def get_auth_settings() -> AuthSettings:
    """Get cached auth settings."""
    return AuthSettings()
