from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "sqlgate"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: HttpUrl | None = None
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Backing store: SQLAlchemy URL, forwarded unchanged. None = fresh in-memory SQLite.
    DATABASE_URL: str | None = None
    # Seconds allowed to open the store (SQLite busy timeout / driver connect timeout).
    CONNECT_TIMEOUT: float = 5.0
    # Default per-statement deadline in seconds; None or 0 disables it.
    STATEMENT_TIMEOUT: float | None = None
    # Log every statement through the sqlalchemy.engine logger.
    SQL_ECHO: bool = False

    # HTTP only: refuse (413) results larger than this many rows. None = unlimited.
    MAX_RESULT_ROWS: int | None = None


settings = Settings()  # type: ignore
