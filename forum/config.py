"""Application Configuration — file- and environment-driven settings via pydantic-settings.

Invariants:
    - Sections mirror the config file layout: https.*, postgresql.*
    - Priority: init kwargs > environment > .env > config.json > secrets
    - get_settings() is cached (lru_cache) — single instance per process
    - config_value(section, key) never raises; missing keys read as ""

Design Decisions:
    - Nested env vars use "__" (HTTPS__ADDRESS=:8443, POSTGRESQL__HOST=db)
    - database_url overrides the URL assembled from the postgresql section
"""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from sqlalchemy.engine import URL


class HttpsSettings(BaseModel):
    """Listener section. TLS is enabled only when both certificate and key are set."""
    address: str = ":8080"
    certificate: str = ""
    key: str = ""
    captcha: bool = False


class PostgresqlSettings(BaseModel):
    host: str = "localhost"
    port: int = 5432
    ssl: str = "disable"
    database: str = "forum"
    username: str = "forum"
    password: str = ""

    def url(self) -> str:
        return URL.create(
            "postgresql+asyncpg",
            username=self.username,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database,
            query={"ssl": self.ssl} if self.ssl else {},
        ).render_as_string(hide_password=False)


class Settings(BaseSettings):
    """Application settings from config.json, .env and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        json_file="config.json",
        case_sensitive=False,
        extra="ignore",
    )

    https: HttpsSettings = Field(default_factory=HttpsSettings)
    postgresql: PostgresqlSettings = Field(default_factory=PostgresqlSettings)

    # Database
    database_url: str | None = None
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Delivery
    static_root: Path = Path(".")
    web_root: Path = Path("web/dist")

    # Sessions & passwords
    session_cookie: str = "forum_session"
    session_ttl_seconds: int = 30 * 24 * 3600
    bcrypt_rounds: int = 11

    # Dispatch
    handler_timeout_seconds: float = 30.0

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @property
    def resolved_database_url(self) -> str:
        return self.database_url or self.postgresql.url()


@lru_cache
def get_settings() -> Settings:
    return Settings()


def config_value(section: str, key: str, settings: Settings | None = None) -> str:
    """String lookup by section + key, "" when either is unknown."""
    settings = settings or get_settings()
    group = getattr(settings, section, None)
    if not isinstance(group, BaseModel):
        return ""
    value = getattr(group, key, None)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
