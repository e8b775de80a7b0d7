"""
Centralized configuration for the veterinary appointments service.

- dataclasses + stdlib parsing, no Pydantic settings.
- Loads from OS env; a repo-root .env is parsed with python-dotenv when present.
- Strong typing & validation in __post_init__.
- Immutable singleton via functools.lru_cache.
- Secrets never logged (masked).
"""

from __future__ import annotations

import functools
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, cast
from urllib.parse import urlparse

from dotenv import load_dotenv


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def _mask_secret(value: Optional[str]) -> str:
    if not value:
        return "<unset>"
    if len(value) <= 8:
        return "***"
    return value[:2] + "…" + value[-2:]


def _get_env_str(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    v = os.getenv(key, default)
    if required and (v is None or str(v).strip() == ""):
        raise ValueError(f"Missing required env var: {key}")
    return v


def _get_env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip().lower()
    return v in {"1", "true", "t", "yes", "y", "on"}


def _get_env_int(key: str, default: int) -> int:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"Env var {key} must be an integer")


def _get_env_float(key: str, default: float) -> float:
    v = os.getenv(key)
    if v is None or v.strip() == "":
        return default
    try:
        return float(v)
    except ValueError:
        raise ValueError(f"Env var {key} must be a number")


def _validate_choice(value: str, *, choices: tuple[str, ...], key: str) -> str:
    if value not in choices:
        raise ValueError(f"{key} must be one of {choices}, got {value!r}")
    return value


def _validate_url(value: Optional[str], *, key: str, allowed_schemes: tuple[str, ...]) -> Optional[str]:
    if value in (None, ""):
        return None
    parsed = urlparse(value)
    if parsed.scheme not in allowed_schemes or not parsed.netloc:
        raise ValueError(f"{key} must be a valid URL with scheme in {allowed_schemes}")
    return value


def _validate_database_url(value: str, *, key: str) -> str:
    if not value.startswith(("postgresql+asyncpg://", "sqlite+aiosqlite://")):
        raise ValueError(f"{key} must start with postgresql+asyncpg:// or sqlite+aiosqlite://")
    return value


# ------------------------------------------------------------------------------
# Settings dataclass (immutable)
# ------------------------------------------------------------------------------
EnvName = Literal["local", "dev", "test", "staging", "prod"]
JwtAlg = Literal["HS256", "HS384", "HS512"]


@dataclass(frozen=True)
class Settings:
    # Environment
    environment: EnvName = "local"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./dev.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10
    auto_create_schema: bool = True

    # Security / JWT (tokens are issued by the auth service, only verified here)
    secret_key: str = field(default="")
    jwt_algorithm: JwtAlg = "HS256"

    # Remote services
    auth_service_url: str = "http://localhost:3000"
    patients_service_url: str = "http://localhost:3001"
    remote_timeout_seconds: float = 5.0

    # Event broker (optional; in-process bus when unset)
    redis_url: Optional[str] = None
    events_channel_prefix: str = "vetcare"
    event_publish_timeout_seconds: float = 5.0

    # Attachments
    upload_dir: Path = field(default_factory=lambda: Path("uploads") / "medical-files")
    max_upload_bytes: int = 10 * 1024 * 1024
    max_upload_files: int = 10

    # Reminder windows
    upcoming_window_days: int = 30

    # Observability
    log_level: str = "INFO"
    log_format: Optional[str] = None

    # Derived/computed flags (filled in __post_init__)
    is_prod: bool = field(init=False)
    is_staging: bool = field(init=False)
    is_dev: bool = field(init=False)
    is_local: bool = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "environment",
            _validate_choice(self.environment, choices=("local", "dev", "test", "staging", "prod"), key="ENVIRONMENT"),
        )
        object.__setattr__(
            self, "jwt_algorithm",
            _validate_choice(self.jwt_algorithm, choices=("HS256", "HS384", "HS512"), key="JWT_ALGORITHM"),
        )

        object.__setattr__(self, "database_url", _validate_database_url(self.database_url, key="DATABASE_URL"))
        if self.redis_url:
            _validate_url(self.redis_url, key="REDIS_URL", allowed_schemes=("redis", "rediss"))
        _validate_url(self.auth_service_url, key="AUTH_SERVICE_URL", allowed_schemes=("http", "https"))
        _validate_url(self.patients_service_url, key="PATIENTS_SERVICE_URL", allowed_schemes=("http", "https"))

        if not self.secret_key or not self.secret_key.strip():
            raise ValueError("SECRET_KEY must be set and non-empty")
        if self.environment in ("staging", "prod") and len(self.secret_key) < 16:
            raise ValueError("SECRET_KEY looks too short for a shared environment")

        if self.remote_timeout_seconds <= 0:
            raise ValueError("REMOTE_TIMEOUT_SECONDS must be > 0")
        if self.event_publish_timeout_seconds <= 0:
            raise ValueError("EVENT_PUBLISH_TIMEOUT_SECONDS must be > 0")
        if self.max_upload_bytes <= 0 or self.max_upload_files <= 0:
            raise ValueError("MAX_UPLOAD_BYTES and MAX_UPLOAD_FILES must be > 0")
        if self.upcoming_window_days <= 0:
            raise ValueError("UPCOMING_WINDOW_DAYS must be > 0")

        if not re.fullmatch(r"(?i)DEBUG|INFO|WARNING|ERROR|CRITICAL", self.log_level.strip()):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        if self.log_format is not None:
            _validate_choice(self.log_format, choices=("json", "console"), key="LOG_FORMAT")

        env = self.environment
        object.__setattr__(self, "is_prod", env == "prod")
        object.__setattr__(self, "is_staging", env == "staging")
        object.__setattr__(self, "is_dev", env in ("dev", "test"))
        object.__setattr__(self, "is_local", env == "local")

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    # Safe dict (for debug prints without secrets)
    def safe_dict(self) -> dict:
        return {
            "environment": self.environment,
            "debug": self.debug,
            "database_url": "<masked>" if self.database_url else "<unset>",
            "database_pool_size": self.database_pool_size,
            "database_max_overflow": self.database_max_overflow,
            "auto_create_schema": self.auto_create_schema,
            "secret_key": _mask_secret(self.secret_key),
            "jwt_algorithm": self.jwt_algorithm,
            "auth_service_url": self.auth_service_url,
            "patients_service_url": self.patients_service_url,
            "remote_timeout_seconds": self.remote_timeout_seconds,
            "redis_url": "<masked>" if self.redis_url else "<unset>",
            "events_channel_prefix": self.events_channel_prefix,
            "event_publish_timeout_seconds": self.event_publish_timeout_seconds,
            "upload_dir": str(self.upload_dir),
            "max_upload_bytes": self.max_upload_bytes,
            "max_upload_files": self.max_upload_files,
            "upcoming_window_days": self.upcoming_window_days,
            "log_level": self.log_level,
            "log_format": self.log_format or "<auto>",
        }


# ------------------------------------------------------------------------------
# Loader (singleton)
# ------------------------------------------------------------------------------
_logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    env_file = Path(__file__).resolve().parent.parent.parent / ".env"
    if env_file.exists():
        load_dotenv(dotenv_path=str(env_file), override=False)

    settings = Settings(
        environment=cast(EnvName, _get_env_str("ENVIRONMENT", "local") or "local"),
        debug=_get_env_bool("DEBUG", False),
        database_url=_get_env_str("DATABASE_URL", "sqlite+aiosqlite:///./dev.db") or "",
        database_pool_size=_get_env_int("DATABASE_POOL_SIZE", 5),
        database_max_overflow=_get_env_int("DATABASE_MAX_OVERFLOW", 10),
        auto_create_schema=_get_env_bool("AUTO_CREATE_SCHEMA", True),
        secret_key=_get_env_str("SECRET_KEY", required=True) or "",
        jwt_algorithm=cast(JwtAlg, _get_env_str("JWT_ALGORITHM", "HS256") or "HS256"),
        auth_service_url=_get_env_str("AUTH_SERVICE_URL", "http://localhost:3000") or "http://localhost:3000",
        patients_service_url=_get_env_str("PATIENTS_SERVICE_URL", "http://localhost:3001") or "http://localhost:3001",
        remote_timeout_seconds=_get_env_float("REMOTE_TIMEOUT_SECONDS", 5.0),
        redis_url=_get_env_str("REDIS_URL", None) or None,
        events_channel_prefix=_get_env_str("EVENTS_CHANNEL_PREFIX", "vetcare") or "vetcare",
        event_publish_timeout_seconds=_get_env_float("EVENT_PUBLISH_TIMEOUT_SECONDS", 5.0),
        upload_dir=Path(_get_env_str("UPLOAD_DIR", "uploads/medical-files") or "uploads/medical-files"),
        max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
        max_upload_files=_get_env_int("MAX_UPLOAD_FILES", 10),
        upcoming_window_days=_get_env_int("UPCOMING_WINDOW_DAYS", 30),
        log_level=_get_env_str("LOG_LEVEL", "INFO") or "INFO",
        log_format=_get_env_str("LOG_FORMAT", None) or None,
    )

    _logger.info("Settings loaded", extra={"settings": settings.safe_dict()})
    return settings
