"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for campusnav happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, db_host -> DB_HOST).

  @model_validator(mode="after"): Cross-field validation once every field is
      resolved. Enforces the SECRET_KEY policy and assembles the database URL
      from the DB_* variables when DATABASE_URL is not given.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies on
  key entropy -- a short key weakens every issued token.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a hard
  startup failure. The process must not serve requests without a signing key.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or campus/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

logger = logging.getLogger("campusnav.config")

_DEFAULT_SQLITE_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'campusnav.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"  # nosec B104 -- container deployments bind all interfaces
    port: int = 3000
    # Optional path prefix every router is mounted under (e.g. "/campus").
    base_path: str = ""
    # Built single-page frontend. Non-API GET routes fall back to index.html.
    static_dir: str = "build/web"
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    # Full SQLAlchemy URL. When empty, it is assembled from the DB_* fields
    # (PostgreSQL) or falls back to a local SQLite file.
    database_url: str = ""
    db_user: str = ""
    db_password: str = ""
    db_host: str = ""
    db_port: int = 5432
    db_name: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = 3600
    bcrypt_rounds: int = 10

    # ------------------------------------------------------------------
    # Access policy
    # ------------------------------------------------------------------

    # POST/PUT/DELETE on campus resources require an admin token.
    require_admin_for_writes: bool = True
    self_registration_enabled: bool = True
    # Public /register may only create students unless this is switched on.
    allow_self_admin_registration: bool = False

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @model_validator(mode="after")
    def resolve_database_url(self) -> "Settings":
        """Build DATABASE_URL from the DB_* variables when it is not set directly.

        URL.create() escapes special characters in the password, which plain
        string formatting would not.
        """
        if self.database_url:
            return self
        if self.db_host:
            self.database_url = URL.create(
                "postgresql+psycopg",
                username=self.db_user or None,
                password=self.db_password or None,
                host=self.db_host,
                port=self.db_port,
                database=self.db_name or None,
            ).render_as_string(hide_password=False)
        else:
            self.database_url = _DEFAULT_SQLITE_URL
        return self

    @model_validator(mode="after")
    def normalize_base_path(self) -> "Settings":
        """Strip trailing slashes and ensure a leading one ("" stays "")."""
        path = self.base_path.strip().rstrip("/")
        if path and not path.startswith("/"):
            path = "/" + path
        self.base_path = path
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once -- at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
