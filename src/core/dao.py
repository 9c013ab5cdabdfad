"""
Data access for the schedule_entries table.
Every backing-store failure surfaces as StoreError; there are no retries.
"""

import sqlite3
import uuid
from datetime import datetime
from typing import Any, Dict, List

from util.logging import logger

from .db import get_db, init_db
from .errors import NotFoundError, StoreError
from .schema import ScheduleEntry, ChangeEvent, validate_entry_fields, validate_patch

# Initialize database on module import
init_db()

ENTRY_COLUMNS = "id, title, person, context, day, type, time_slot, created_at"


def _row_to_entry(row: sqlite3.Row) -> ScheduleEntry:
    return ScheduleEntry(
        id=row["id"],
        title=row["title"],
        person=row["person"],
        context=row["context"],
        day=row["day"],
        type=row["type"],
        time_slot=row["time_slot"],
        created_at=datetime.fromisoformat(row["created_at"])
    )


def _fetch_entry(conn: sqlite3.Connection, entry_id: str):
    cursor = conn.cursor()
    cursor.execute(f"SELECT {ENTRY_COLUMNS} FROM schedule_entries WHERE id = ?", (entry_id,))
    return cursor.fetchone()


def list_entries(newest_first: bool = False) -> List[ScheduleEntry]:
    """
    List all schedule entries.

    Default order is insertion order; newest_first orders by created_at
    descending, which is what the HTTP listing returns.
    """
    order = "created_at DESC, rowid DESC" if newest_first else "rowid ASC"
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f"SELECT {ENTRY_COLUMNS} FROM schedule_entries ORDER BY {order}")
            return [_row_to_entry(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        logger.log_entry_operation("list", status="failed", error=str(e))
        raise StoreError(str(e)) from e


def get_entry(entry_id: str) -> ScheduleEntry:
    """Get a single entry by id."""
    try:
        with get_db() as conn:
            row = _fetch_entry(conn, entry_id)
    except sqlite3.Error as e:
        logger.log_entry_operation("get", entry_id, status="failed", error=str(e))
        raise StoreError(str(e)) from e

    if row is None:
        raise NotFoundError(f"Entry not found: {entry_id}")
    return _row_to_entry(row)


def create_entry(fields: Dict[str, Any]) -> ScheduleEntry:
    """Insert one entry and return the persisted row with its generated id and timestamp."""
    values = validate_entry_fields(fields)
    entry_id = str(uuid.uuid4())

    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT INTO schedule_entries (id, title, person, context, day, type, time_slot) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (entry_id, values["title"], values["person"], values["context"],
                 values["day"], values["type"], values["time_slot"])
            )
            conn.commit()
            row = _fetch_entry(conn, entry_id)
    except sqlite3.Error as e:
        logger.log_entry_operation("create", fields=values, status="failed", error=str(e))
        raise StoreError(str(e)) from e

    logger.log_entry_operation("create", entry_id, values)
    return _row_to_entry(row)


def update_entry(entry_id: str, patch: Dict[str, Any]) -> ScheduleEntry:
    """Apply a partial update to one entry and return the updated row."""
    values = validate_patch(patch)
    assignments = ", ".join(f"{name} = ?" for name in values)

    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE schedule_entries SET {assignments} WHERE id = ?",
                (*values.values(), entry_id)
            )
            updated = cursor.rowcount
            conn.commit()
            row = _fetch_entry(conn, entry_id)
    except sqlite3.Error as e:
        logger.log_entry_operation("update", entry_id, values, status="failed", error=str(e))
        raise StoreError(str(e)) from e

    if not updated or row is None:
        raise NotFoundError(f"Entry not found: {entry_id}")

    logger.log_entry_operation("update", entry_id, values)
    return _row_to_entry(row)


def delete_entry(entry_id: str) -> None:
    """Delete one entry. Deleting an id that does not exist is not an error."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM schedule_entries WHERE id = ?", (entry_id,))
            deleted = cursor.rowcount
            conn.commit()
    except sqlite3.Error as e:
        logger.log_entry_operation("delete", entry_id, status="failed", error=str(e))
        raise StoreError(str(e)) from e

    logger.log_entry_operation("delete", entry_id, status="success" if deleted else "noop")


def count_entries() -> int:
    """Get total count of schedule entries."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) FROM schedule_entries")
            return cursor.fetchone()[0]
    except sqlite3.Error as e:
        logger.log_entry_operation("count", status="failed", error=str(e))
        raise StoreError(str(e)) from e


# Change log access for the change feed

def latest_change_seq() -> int:
    """Return the highest change log sequence number, or 0 when empty."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COALESCE(MAX(seq), 0) FROM schedule_changes")
            return cursor.fetchone()[0]
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e


def list_changes_since(seq: int) -> List[ChangeEvent]:
    """List change log rows with a sequence number greater than seq, oldest first."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT seq, table_name, event_type, entry_id, committed_at "
                "FROM schedule_changes WHERE seq > ? ORDER BY seq ASC",
                (seq,)
            )
            return [
                ChangeEvent(
                    seq=row["seq"],
                    table=row["table_name"],
                    event_type=row["event_type"],
                    entry_id=row["entry_id"],
                    committed_at=datetime.fromisoformat(row["committed_at"])
                )
                for row in cursor.fetchall()
            ]
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e


def prune_changes(up_to_seq: int, older_than_sec: int) -> int:
    """Delete delivered change log rows older than the retention window."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM schedule_changes WHERE seq <= ? "
                "AND committed_at < strftime('%Y-%m-%d %H:%M:%f', 'now', ?)",
                (up_to_seq, f"-{int(older_than_sec)} seconds")
            )
            pruned = cursor.rowcount
            conn.commit()
            return pruned
    except sqlite3.Error as e:
        raise StoreError(str(e)) from e
