"""SQLite persistence for analyses, the per-company cache and settings.

This is the storage collaborator the analyzer hands its results to. It
keeps:

- analyses: every completed AnalysisResult, newest last
- cache_entries: normalized records per company, valid for 24 hours
- settings: a single row holding the AnalyzerSettings JSON

Records and statistics are stored as JSON documents; they are validated
back into pydantic models on read.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import sqlalchemy as sa
from pydantic import TypeAdapter, ValidationError
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, SQLModel, select

from tenurescope.common.exceptions import (
    DataFormatAssumptionException,
)
from tenurescope.models import AnalysisResult, NormalizedRecord, Statistics
from tenurescope.settings import AnalyzerSettings

logger = logging.getLogger(__name__)

CACHE_DURATION_MS = 24 * 60 * 60 * 1000
MAX_CACHE_AGE_MS = 30 * 24 * 60 * 60 * 1000

_records_adapter = TypeAdapter(list[NormalizedRecord])


class AnalysisRow(SQLModel, table=True):  # type: ignore[call-arg]
    """One completed analysis."""

    __tablename__ = "analyses"
    __table_args__ = (sa.Index("idx_analyses_company", "company_id"),)

    id: int | None = Field(default=None, primary_key=True)
    company_id: str
    company_name: str
    timestamp: int
    records_json: str
    stats_json: str


class CacheEntry(SQLModel, table=True):  # type: ignore[call-arg]
    """Normalized records cached per company."""

    __tablename__ = "cache_entries"

    company_id: str = Field(primary_key=True)
    timestamp: int
    expires_at: int
    data_json: str


class SettingsRow(SQLModel, table=True):  # type: ignore[call-arg]
    """Single-row settings document."""

    __tablename__ = "settings"

    id: int = Field(default=1, primary_key=True)
    settings_json: str


async def create_engine_and_init(
    db_path: Path,
    echo: bool = False,
) -> AsyncEngine:
    """Create an async engine and create any missing tables.

    Args:
        db_path: Path to the SQLite database file.
        echo: Whether to echo SQL statements (for debugging).

    Returns:
        An initialized AsyncEngine.
    """
    url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_async_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, connection_record: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    return engine


def _load_analysis(row: AnalysisRow) -> AnalysisResult:
    try:
        return AnalysisResult(
            company_id=row.company_id,
            company_name=row.company_name,
            timestamp=row.timestamp,
            records=_records_adapter.validate_json(row.records_json),
            stats=Statistics.model_validate_json(row.stats_json),
        )
    except ValidationError as e:
        raise DataFormatAssumptionException(
            errors=e.errors(),  # type: ignore[arg-type]
            failed_doc={"company_id": row.company_id, "id": row.id},
            model_name="AnalysisResult",
        ) from e


class AnalysisStore:
    """Async store for analyses, the per-company cache and settings.

    Args:
        engine: Initialized async engine.
        clock: Returns the current time in seconds since the epoch.

    Example:
        async with AnalysisStore.open(Path("tenurescope.db")) as store:
            await store.save_analysis(result)
            latest = await store.get_last_analysis()
    """

    def __init__(
        self,
        engine: AsyncEngine,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._engine = engine
        self._session_factory = async_sessionmaker(
            engine, expire_on_commit=False
        )
        self._clock = clock

    @classmethod
    @asynccontextmanager
    async def open(
        cls,
        db_path: Path | str,
        clock: Callable[[], float] = time.time,
    ) -> AsyncIterator[AnalysisStore]:
        """Open (creating if needed) a store backed by ``db_path``."""
        engine = await create_engine_and_init(Path(db_path))
        try:
            yield cls(engine, clock=clock)
        finally:
            await engine.dispose()

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    # -- analyses ---------------------------------------------------------

    async def save_analysis(self, analysis: AnalysisResult) -> None:
        """Persist an analysis and refresh the company's cache entry."""
        row = AnalysisRow(
            company_id=analysis.company_id,
            company_name=analysis.company_name,
            timestamp=analysis.timestamp,
            records_json=_records_adapter.dump_json(analysis.records).decode(),
            stats_json=analysis.stats.model_dump_json(),
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()

        await self.save_to_cache(analysis.company_id, analysis.records)
        logger.info(
            f"Saved analysis for {analysis.company_id} "
            f"({len(analysis.records)} records)"
        )

    async def get_last_analysis(self) -> AnalysisResult | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(AnalysisRow)
                .order_by(AnalysisRow.id.desc())  # type: ignore[union-attr]
                .limit(1)
            )
            row = result.scalars().first()
        return _load_analysis(row) if row else None

    async def get_analysis(self, company_id: str) -> AnalysisResult | None:
        """Most recent analysis for a company, or None."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(AnalysisRow)
                .where(AnalysisRow.company_id == company_id)
                .order_by(AnalysisRow.id.desc())  # type: ignore[union-attr]
                .limit(1)
            )
            row = result.scalars().first()
        return _load_analysis(row) if row else None

    # -- cache ------------------------------------------------------------

    async def save_to_cache(
        self, company_id: str, records: list[NormalizedRecord]
    ) -> None:
        now = self.now_ms()
        entry = CacheEntry(
            company_id=company_id,
            timestamp=now,
            expires_at=now + CACHE_DURATION_MS,
            data_json=_records_adapter.dump_json(records).decode(),
        )
        async with self._session_factory() as session:
            await session.merge(entry)
            await session.commit()

    async def get_from_cache(
        self, company_id: str
    ) -> list[NormalizedRecord] | None:
        """Cached records for a company; expired entries are deleted."""
        async with self._session_factory() as session:
            entry = await session.get(CacheEntry, company_id)
            if entry is None:
                return None

            if self.now_ms() > entry.expires_at:
                logger.info(f"Cache entry for {company_id} expired")
                await session.delete(entry)
                await session.commit()
                return None

        try:
            return _records_adapter.validate_json(entry.data_json)
        except ValidationError as e:
            raise DataFormatAssumptionException(
                errors=e.errors(),  # type: ignore[arg-type]
                failed_doc={"company_id": company_id},
                model_name="NormalizedRecord",
            ) from e

    async def clear_cache(self) -> None:
        async with self._session_factory() as session:
            await session.execute(sa.delete(CacheEntry))
            await session.commit()

    async def cleanup_old_data(self) -> int:
        """Drop cache entries older than 30 days. Returns entries removed."""
        cutoff = self.now_ms() - MAX_CACHE_AGE_MS
        async with self._session_factory() as session:
            result = await session.execute(
                sa.delete(CacheEntry).where(CacheEntry.timestamp < cutoff)  # type: ignore[arg-type]
            )
            await session.commit()
        removed = result.rowcount or 0
        if removed:
            logger.info(f"Removed {removed} stale cache entries")
        return removed

    # -- settings ---------------------------------------------------------

    async def get_settings(self) -> AnalyzerSettings:
        """Stored settings, or defaults when none were saved."""
        async with self._session_factory() as session:
            row = await session.get(SettingsRow, 1)
        if row is None:
            return AnalyzerSettings()
        return AnalyzerSettings.model_validate_json(row.settings_json)

    async def save_settings(self, **changes: Any) -> AnalyzerSettings:
        """Merge ``changes`` into the stored settings and save them."""
        current = await self.get_settings()
        updated = AnalyzerSettings.model_validate(
            {**current.model_dump(), **changes}
        )
        async with self._session_factory() as session:
            await session.merge(
                SettingsRow(id=1, settings_json=updated.model_dump_json())
            )
            await session.commit()
        return updated

    async def clear_all_data(self) -> None:
        """Delete everything and restore default settings."""
        async with self._session_factory() as session:
            await session.execute(sa.delete(AnalysisRow))
            await session.execute(sa.delete(CacheEntry))
            await session.execute(sa.delete(SettingsRow))
            await session.commit()
        await self.save_settings(**AnalyzerSettings().model_dump())
