"""SQLite persistence for synchronized events."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import aiosqlite

from ..events.models import LOCAL_FIELDS, SOURCE_FIELDS, Event, EventIdentity
from .exceptions import EventConflictError, EventNotFoundError, StoreError
from .models import (
    EVENT_COLUMNS,
    StoredEvent,
    encode_column,
    encode_datetime,
    event_to_row,
    row_to_stored_event,
)

logger = logging.getLogger(__name__)

# Columns the ingestion path may write on an existing row.
SYNC_WRITABLE = frozenset(SOURCE_FIELDS) | {"rejected"}

# Columns the moderation path may write.
LOCAL_WRITABLE = frozenset(LOCAL_FIELDS)


class EventStore:
    """Event persistence keyed by ``(organization, uid, recurrence_id)``.

    Every write bumps the row ``version``; updates are compare-and-set on the
    version read beforehand, so a concurrent writer surfaces as
    ``EventConflictError`` instead of a silent overwrite.
    """

    def __init__(self, database_path: Union[Path, str]):
        """Initialize event store.

        Args:
            database_path: Path to SQLite database file
        """
        self.database_path = Path(database_path) if isinstance(database_path, str) else database_path
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialized = False
        self._initialization_lock: Optional[asyncio.Lock] = None

        logger.info(f"Event store initialized (lazy): {self.database_path}")

    async def _ensure_initialized(self) -> None:
        """Create the schema on first use."""
        if self._initialized:
            return

        if self._initialization_lock is None:
            self._initialization_lock = asyncio.Lock()

        async with self._initialization_lock:
            # Double-check after acquiring lock
            if self._initialized:
                return

            try:
                await self._initialize_database()
            except aiosqlite.Error as e:
                logger.exception("Failed to initialize event store")
                raise StoreError(f"Failed to initialize database: {e}") from e
            self._initialized = True

    async def _initialize_database(self) -> None:
        async with aiosqlite.connect(str(self.database_path)) as db:
            # WAL lets readers proceed while a sync is writing
            await db.execute("PRAGMA journal_mode=WAL")
            await db.execute("PRAGMA synchronous=NORMAL")

            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    organization TEXT NOT NULL,
                    uid TEXT NOT NULL,
                    recurrence_id TEXT NOT NULL DEFAULT '',
                    summary TEXT NOT NULL DEFAULT '',
                    description TEXT,
                    location TEXT,
                    start_time TEXT,
                    end_time TEXT,
                    created TEXT,
                    modified TEXT,
                    status TEXT,
                    transparency TEXT,
                    sequence INTEGER NOT NULL DEFAULT 0,
                    rrule TEXT,
                    rdate TEXT,
                    exdate TEXT,
                    rejected INTEGER NOT NULL DEFAULT 0,
                    type TEXT NOT NULL DEFAULT '',
                    overlay TEXT NOT NULL DEFAULT '{}',
                    exdate_manual TEXT,
                    version INTEGER NOT NULL DEFAULT 1,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE (organization, uid, recurrence_id)
                )
            """
            )

            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_events_start_time
                ON events(start_time)
            """
            )

            await db.commit()
            logger.debug("Event store schema ready")

    async def initialize(self) -> None:
        """Create the schema eagerly."""
        await self._ensure_initialized()

    async def get_by_identity(self, organization: str, identity: EventIdentity) -> StoredEvent:
        """Look up one row.

        Raises:
            EventNotFoundError: No row has this identity
            StoreError: Database failure
        """
        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    """
                    SELECT * FROM events
                    WHERE organization = ? AND uid = ? AND recurrence_id = ?
                """,
                    (organization, identity.uid, identity.recurrence_id or ""),
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to read event: {e}", organization, identity) from e

        if row is None:
            raise EventNotFoundError(f"No event {identity} for {organization}", organization, identity)
        return row_to_stored_event(row)

    async def insert(self, event: Event) -> StoredEvent:
        """Insert a new row at version 1.

        Raises:
            EventConflictError: A row with the same identity already exists
            StoreError: Database failure
        """
        await self._ensure_initialized()
        placeholders = ", ".join("?" for _ in EVENT_COLUMNS)
        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                cursor = await db.execute(
                    f"INSERT INTO events ({', '.join(EVENT_COLUMNS)}) VALUES ({placeholders})",
                    event_to_row(event),
                )
                await db.commit()
                row_id = cursor.lastrowid
        except aiosqlite.IntegrityError as e:
            raise EventConflictError(
                f"Event {event.identity} for {event.organization} was inserted concurrently",
                event.organization,
                event.identity,
            ) from e
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to insert event: {e}", event.organization, event.identity) from e

        logger.debug(f"Inserted event {event.identity} for {event.organization}")
        return StoredEvent(**dict(event), id=row_id, version=1)

    async def update(
        self,
        organization: str,
        identity: EventIdentity,
        fields: Mapping[str, Any],
        expected_version: int,
    ) -> int:
        """Write source-owned fields (and the rejected reset) in one guarded statement.

        Args:
            organization: Owning organization
            identity: Row identity
            fields: Column values to write
            expected_version: Version the caller read; the write only applies if unchanged

        Returns:
            The row's new version

        Raises:
            ValueError: A field outside the sync-writable set was given
            EventConflictError: The row changed since it was read
            EventNotFoundError: The row was deleted since it was read
        """
        return await self._guarded_update(organization, identity, fields, expected_version, SYNC_WRITABLE)

    async def patch_local_fields(
        self,
        organization: str,
        identity: EventIdentity,
        *,
        rejected: Optional[bool] = None,
        type: Optional[str] = None,
        exdate_manual: Optional[str] = None,
        overlay: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Write locally-owned moderation fields; arguments left as None are untouched.

        Returns:
            The row's new version
        """
        fields: Dict[str, Any] = {}
        if rejected is not None:
            fields["rejected"] = rejected
        if type is not None:
            fields["type"] = type
        if exdate_manual is not None:
            fields["exdate_manual"] = exdate_manual
        if overlay is not None:
            fields["overlay"] = overlay

        current = await self.get_by_identity(organization, identity)
        if not fields:
            return current.version
        return await self._guarded_update(organization, identity, fields, current.version, LOCAL_WRITABLE)

    async def _guarded_update(
        self,
        organization: str,
        identity: EventIdentity,
        fields: Mapping[str, Any],
        expected_version: int,
        allowed: frozenset,
    ) -> int:
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Fields not writable here: {sorted(unknown)}")
        if not fields:
            return expected_version

        names = sorted(fields)
        assignments = ", ".join(f"{name} = ?" for name in names)
        values = [encode_column(name, fields[name]) for name in names]

        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                cursor = await db.execute(
                    f"""
                    UPDATE events
                    SET {assignments}, version = version + 1, updated_at = CURRENT_TIMESTAMP
                    WHERE organization = ? AND uid = ? AND recurrence_id = ? AND version = ?
                """,
                    (*values, organization, identity.uid, identity.recurrence_id or "", expected_version),
                )
                await db.commit()
                updated = cursor.rowcount
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to update event: {e}", organization, identity) from e

        if updated == 0:
            # Distinguish a concurrent write from a concurrent delete
            await self.get_by_identity(organization, identity)
            raise EventConflictError(
                f"Event {identity} for {organization} changed since version {expected_version}",
                organization,
                identity,
            )

        logger.debug(f"Updated {names} on {identity} for {organization}")
        return expected_version + 1

    async def list_by_organization(self, organization: str) -> List[StoredEvent]:
        """All rows owned by an organization."""
        return await self.list_events(organization=organization)

    async def list_events(
        self,
        organization: Optional[str] = None,
        include_rejected: bool = True,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[StoredEvent]:
        """Query rows, ordered by start time.

        Args:
            organization: Restrict to one organization
            include_rejected: Include rows rejected by moderation
            start: Only rows ending at or after this instant
            end: Only rows starting at or before this instant

        Returns:
            Matching events
        """
        await self._ensure_initialized()

        clauses: List[str] = []
        params: List[Any] = []
        if organization is not None:
            clauses.append("organization = ?")
            params.append(organization)
        if not include_rejected:
            clauses.append("rejected = 0")
        if start is not None:
            clauses.append("(end_time IS NULL OR end_time >= ?)")
            params.append(encode_datetime(start))
        if end is not None:
            clauses.append("(start_time IS NULL OR start_time <= ?)")
            params.append(encode_datetime(end))

        query = "SELECT * FROM events"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY start_time ASC, id ASC"

        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(query, params)
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to list events: {e}", organization) from e

        events = [row_to_stored_event(row) for row in rows]
        logger.debug(f"Retrieved {len(events)} events from store")
        return events

    async def delete_by_identity(self, uid: str, organization: str, recurrence_id: Optional[str] = None) -> bool:
        """Delete one row; a missing recurrence id addresses the series master.

        Returns:
            True if a row was deleted
        """
        await self._ensure_initialized()
        try:
            async with aiosqlite.connect(str(self.database_path)) as db:
                cursor = await db.execute(
                    "DELETE FROM events WHERE uid = ? AND organization = ? AND recurrence_id = ?",
                    (uid, organization, recurrence_id or ""),
                )
                await db.commit()
                deleted = cursor.rowcount > 0
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to delete event: {e}", organization) from e

        if deleted:
            logger.debug(f"Deleted event {uid} ({recurrence_id or 'master'}) for {organization}")
        return deleted

    async def count_events(self) -> int:
        """Total number of stored rows."""
        await self._ensure_initialized()
        async with aiosqlite.connect(str(self.database_path)) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM events")
            row = await cursor.fetchone()
        return row[0] if row else 0
