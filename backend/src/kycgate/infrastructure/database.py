"""
Transaction audit log with async SQLAlchemy.

Every API call is recorded with caller, endpoint, masked request payload,
response and timing. The log is optional: with no DATABASE_URL configured
nothing is persisted and record_transaction() is a no-op.

Design Decisions:
- AsyncSession for non-blocking writes
- Engine created lazily on first use
- A failed audit write is logged, never surfaced to the API caller
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator
from uuid import uuid4

from sqlalchemy import DateTime, Integer, String, Text, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from kycgate.config import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class ApiTransactionLog(Base):
    """One row per API request."""
    __tablename__ = "api_transaction_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )

    auth_type: Mapped[str] = mapped_column(String(16))  # api_key
    caller_id: Mapped[str | None] = mapped_column(String(128), index=True)
    service: Mapped[str] = mapped_column(String(32), index=True)  # pan, ocr, gst, aadhaar
    endpoint: Mapped[str] = mapped_column(String(256))

    request_payload: Mapped[str | None] = mapped_column(Text)
    response_data: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16))  # success, failure
    duration_ms: Mapped[int] = mapped_column(Integer)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "authType": self.auth_type,
            "callerId": self.caller_id,
            "service": self.service,
            "endpoint": self.endpoint,
            "requestPayload": self.request_payload,
            "responseData": self.response_data,
            "status": self.status,
            "durationMs": self.duration_ms,
        }


# Engine and session factory (initialized lazily)
_engine = None
_session_factory = None


def is_enabled() -> bool:
    """True when an audit database is configured."""
    return bool(get_settings().database_url)


def get_engine():
    """Get or create the async database engine."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_pre_ping=True,
        )
        logger.info(f"Database engine created for {_engine.url.render_as_string(hide_password=True)}")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory for creating database sessions."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Get a database session.

    Usage:
        async with get_session() as session:
            session.add(record)
            await session.commit()
    """
    session = get_session_factory()()
    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def init_db() -> None:
    """
    Create audit tables if an audit database is configured.

    In production, use Alembic migrations instead.
    """
    if not is_enabled():
        logger.info("DATABASE_URL not set; transaction audit log disabled")
        return
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


async def close_db() -> None:
    """Close database connections on shutdown."""
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connections closed")


async def record_transaction(
    *,
    caller_id: str | None,
    service: str,
    endpoint: str,
    request_payload: str | None,
    response_data: str | None,
    status: str,
    duration_ms: int,
    auth_type: str = "api_key",
) -> None:
    """Persist one audit row; failures are logged and swallowed."""
    if not is_enabled():
        return

    record = ApiTransactionLog(
        auth_type=auth_type,
        caller_id=caller_id,
        service=service,
        endpoint=endpoint,
        request_payload=request_payload,
        response_data=response_data,
        status=status,
        duration_ms=duration_ms,
    )
    try:
        async with get_session() as session:
            session.add(record)
            await session.commit()
    except SQLAlchemyError as e:
        logger.error(f"Failed to write transaction log for {endpoint}: {e}")

async def list_transactions(
    *,
    caller_id: str | None = None,
    service: str | None = None,
    status: str | None = None,
    limit: int = 100,
) -> list[ApiTransactionLog]:
    """Most recent audit rows first, optionally filtered."""
    stmt = select(ApiTransactionLog).order_by(ApiTransactionLog.created_at.desc()).limit(limit)
    if caller_id:
        stmt = stmt.where(ApiTransactionLog.caller_id == caller_id)
    if service:
        stmt = stmt.where(ApiTransactionLog.service == service)
    if status:
        stmt = stmt.where(ApiTransactionLog.status == status)

    async with get_session() as session:
        result = await session.execute(stmt)
        return list(result.scalars().all())


async def get_transaction(transaction_id: str) -> ApiTransactionLog | None:
    async with get_session() as session:
        return await session.get(ApiTransactionLog, transaction_id)
