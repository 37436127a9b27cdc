"""Jobly settings, read from the environment.

Each concern is its own `BaseSettings` group with an env prefix
(`APP_`, `SERVER_`, `DATABASE_`, `AUTH0_`, `SECURITY_`, `OTEL_`). `Settings`
composes them and rejects unsafe combinations.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Annotated

from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

PSYCOPG_DIALECT = "postgresql+psycopg"

# Pool options belong to create_async_engine, not to the connection string.
ENGINE_ONLY_QUERY_ARGS = ("pool_size", "max_overflow", "pool_timeout", "pool_recycle")


def to_psycopg_url(url: str) -> str:
    """Point any PostgreSQL URL at the async psycopg dialect.

    `postgresql://`, `postgres://` and `postgresql+<driver>://` are all
    accepted. Engine-only query args are dropped; libpq args such as
    `sslmode` are kept.
    """
    parsed = make_url(url.strip())
    if not parsed.drivername.startswith("postgres"):
        raise ValueError(f"Unsupported database URL scheme: {parsed.drivername}")
    parsed = parsed.set(drivername=PSYCOPG_DIALECT).difference_update_query(
        ENGINE_ONLY_QUERY_ARGS
    )
    return parsed.render_as_string(hide_password=False)


class AppEnvironment(StrEnum):
    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AppConfig(BaseSettings):
    name: str = "jobly-api"
    env: AppEnvironment = AppEnvironment.LOCAL
    version: str = "0.1.0"
    debug: bool = False
    log_level: LogLevel = LogLevel.INFO
    api_prefix: str = "/api/v1"

    model_config = SettingsConfigDict(env_prefix="APP_")

    @field_validator("env", "log_level", mode="before")
    @classmethod
    def normalize_case(cls, v: object, info: ValidationInfo) -> object:
        if isinstance(v, str) and not isinstance(v, StrEnum):
            return v.lower() if info.field_name == "env" else v.upper()
        return v


class ServerConfig(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3001
    workers: int = Field(default=4, ge=1)

    model_config = SettingsConfigDict(env_prefix="SERVER_")


class DatabaseConfig(BaseSettings):
    """Connection settings.

    A full URL (`DATABASE_URL_APP`) wins over the discrete host/port/name
    fields. `DATABASE_URL_ADMIN` is only used by `jobly-db-init` and falls
    back to the app URL.
    """

    url_app: str = Field(default="", alias="database_url_app")
    url_admin: str = Field(default="", alias="database_url_admin")

    host: str = "localhost"
    port: int = 5432
    name: str = "jobly"
    user: str = "postgres"
    password: SecretStr = SecretStr("")
    pool_size: int = 10
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    echo: bool = False

    model_config = SettingsConfigDict(env_prefix="DATABASE_", populate_by_name=True)

    @property
    def async_url(self) -> str:
        if self.url_app:
            return to_psycopg_url(self.url_app)
        return URL.create(
            PSYCOPG_DIALECT,
            username=self.user,
            password=self.password.get_secret_value() or None,
            host=self.host,
            port=self.port,
            database=self.name,
        ).render_as_string(hide_password=False)

    @property
    def admin_url(self) -> str:
        return to_psycopg_url(self.url_admin) if self.url_admin else self.async_url


class Auth0Config(BaseSettings):
    domain: str = ""
    audience: str = ""
    algorithms: str = "RS256"
    jwks_cache_ttl: int = 3600
    # Claim compared with the {username} path parameter for self-service routes.
    username_claim: str = "nickname"

    model_config = SettingsConfigDict(env_prefix="AUTH0_")

    @property
    def issuer_url(self) -> str:
        return f"https://{self.domain}/"

    @property
    def jwks_url(self) -> str:
        return f"{self.issuer_url}.well-known/jwks.json"

    @property
    def algorithms_list(self) -> list[str]:
        return [algo.strip() for algo in self.algorithms.split(",") if algo.strip()]


class SecurityConfig(BaseSettings):
    cors_allowed_origins: Annotated[list[str], NoDecode] = ["http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["GET", "POST", "PATCH", "DELETE"]
    cors_allow_headers: list[str] = ["Authorization", "Content-Type", "X-Request-ID"]
    skip_jwt_validation: bool = False
    max_request_size_bytes: int = 1_048_576

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def split_origins(cls, v: list[str] | str) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class ObservabilityConfig(BaseSettings):
    service_name: str = "jobly-api"
    otlp_endpoint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OTEL_EXPORTER_OTLP_ENDPOINT", "OTEL_OTLP_ENDPOINT"),
    )
    otlp_insecure: bool = Field(
        default=True,
        validation_alias=AliasChoices("OTEL_EXPORTER_OTLP_INSECURE", "OTEL_OTLP_INSECURE"),
    )
    log_record_format: str = "json"

    model_config = SettingsConfigDict(env_prefix="OTEL_", populate_by_name=True)

    @field_validator("log_record_format", mode="after")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("OTEL_LOG_RECORD_FORMAT must be 'json' or 'console'")
        return v


class Settings(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    auth0: Auth0Config = Field(default_factory=Auth0Config)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    metrics_token: str | None = None

    @model_validator(mode="after")
    def reject_unsafe_combinations(self) -> Settings:
        if self.security.skip_jwt_validation and self.app.env != AppEnvironment.LOCAL:
            raise ValueError(
                "SECURITY_SKIP_JWT_VALIDATION is only allowed when APP_ENV=local "
                f"(got {self.app.env.value})"
            )
        if self.app.env == AppEnvironment.PROD and self.observability.otlp_insecure:
            raise ValueError("OTEL_EXPORTER_OTLP_INSECURE must be false in prod")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reload_settings() -> Settings:
    """Drop the cached settings and read the environment again."""
    get_settings.cache_clear()
    return get_settings()
