# src/shared/database.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, DateTime, Enum, Integer, true
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from src.shared.config import Settings, get_settings
from src.shared.logging import get_logger

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Project-wide SQLAlchemy declarative base."""
    pass


def enum_column(enum_cls, length: int = 20) -> Enum:
    """Enum stored as its string value (VARCHAR), not a native DB type."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class IdMixin:
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )


class SoftDeleteMixin:
    """Rows are never hard-deleted; finders filter on is_active (see SQLAlchemyRepository._select)."""
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, server_default=true())


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _create_engine(url: str, settings: Settings) -> AsyncEngine:
    kwargs: Dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_size"] = settings.database_pool_size
        kwargs["max_overflow"] = settings.database_max_overflow
        kwargs["pool_recycle"] = 1800
    return create_async_engine(url, **kwargs)


def configure_database(url: Optional[str] = None, settings: Optional[Settings] = None) -> AsyncEngine:
    """(Re)bind the module-level engine and session factory."""
    global _engine, _session_factory
    settings = settings or get_settings()
    _engine = _create_engine(url or settings.database_url, settings)
    _session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _engine


def get_engine() -> AsyncEngine:
    """Lazy singleton engine."""
    if _engine is None:
        configure_database()
    assert _engine is not None
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazy singleton session factory."""
    if _session_factory is None:
        configure_database()
    assert _session_factory is not None
    return _session_factory


async def init_models(engine: Optional[AsyncEngine] = None) -> None:
    """Create every table registered on Base.metadata (idempotent)."""
    # model modules register their tables on import
    import src.appointments.infrastructure.models.appointment_model  # noqa: F401
    import src.clinical.infrastructure.models.clinical_models  # noqa: F401
    import src.pharmacy.infrastructure.models.pharmacy_models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database.schema_ready", tables=len(Base.metadata.tables))


async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
