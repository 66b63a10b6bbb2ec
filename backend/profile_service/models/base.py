"""Engines, sessions and declarative base shared by the API and the Celery workers."""

import uuid
from typing import AsyncGenerator

from sqlalchemy import Column, DateTime, MetaData, Uuid, func, create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from profile_service.config import get_settings

settings = get_settings()

# Celery workers run outside the event loop, so they get the blocking driver
SYNC_DRIVERS = {
    "postgresql": "postgresql+psycopg2",
    "sqlite": "sqlite",
}


def sync_url(database_url: str) -> URL:
    url = make_url(database_url)
    return url.set(drivername=SYNC_DRIVERS.get(url.get_backend_name(), url.drivername))


# API side: request sessions
engine = create_async_engine(settings.database_url, echo=settings.debug, pool_pre_ping=True)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Worker side: counter repair and the nightly cohort pass
sync_engine = create_engine(sync_url(settings.database_url), echo=settings.debug, pool_pre_ping=True)

SyncSessionLocal = sessionmaker(
    bind=sync_engine,
    autocommit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention={
        "ix": "ix_%(column_0_label)s",
        "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    })


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDMixin:
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """One session per request: committed when the route returns, rolled back if it raises."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
