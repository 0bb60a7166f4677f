import asyncio
import enum
import logging
from datetime import datetime, timezone
from typing import Awaitable, Optional, TypeVar

from sqlalchemy import Enum, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from dicewizard.errors import OperationTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands timestamps back without tzinfo; everything stored is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Enum type persisted by value, guarded by a CHECK constraint."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        create_constraint=True,
        validate_strings=True,
        length=20,
        values_callable=lambda members: [m.value for m in members],
    )


def is_unique_violation(exc: IntegrityError) -> bool:
    msg = str(exc.orig).lower()
    return (
        "unique constraint" in msg
        or "duplicate entry" in msg
        or "duplicate key" in msg
    )


class Database:
    """Async engine plus session factory for one database URL."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_async_engine(url, echo=echo)
        self.session = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

        if url.startswith("sqlite"):
            @event.listens_for(self.engine.sync_engine, "connect")
            def _enable_foreign_keys(dbapi_connection, _record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    async def init_db(self):
        # models register their tables on Base.metadata when imported
        import dicewizard.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Schema ready on %s", self.engine.url.render_as_string(hide_password=True))

    async def dispose(self):
        await self.engine.dispose()


async def run_with_deadline(call: Awaitable[T], seconds: float) -> T:
    """Await a core call, cancelling it (and its query) once the deadline passes."""
    try:
        return await asyncio.wait_for(call, timeout=seconds)
    except asyncio.TimeoutError:
        logger.warning("Operation exceeded %.1fs deadline", seconds)
        raise OperationTimeout(f"operation exceeded {seconds:g}s deadline")
