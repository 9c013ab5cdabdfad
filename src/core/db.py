"""
SQLite foundation for the schedule store.
The change log table is filled by triggers so mutations from any
connection or process reach the change feed.
"""

import sqlite3
from contextlib import contextmanager
from typing import Generator

from .config import get_db_path, ensure_db_directory

# Millisecond timestamps keep created_at ordering stable for quick inserts
TIMESTAMP_SQL = "(strftime('%Y-%m-%d %H:%M:%f', 'now'))"

CHANGE_EVENTS = ("INSERT", "UPDATE", "DELETE")


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get a SQLite database connection."""
    conn = sqlite3.connect(get_db_path())
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db():
    """Initialize the database with required tables and change triggers."""
    ensure_db_directory()

    with get_db() as conn:
        cursor = conn.cursor()

        cursor.execute(f'''
            CREATE TABLE IF NOT EXISTS schedule_entries (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                person TEXT NOT NULL,
                context TEXT NOT NULL,
                day TEXT NOT NULL,
                type TEXT NOT NULL,
                time_slot TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL DEFAULT {TIMESTAMP_SQL}
            )
        ''')

        cursor.execute(f'''
            CREATE TABLE IF NOT EXISTS schedule_changes (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                table_name TEXT NOT NULL,
                event_type TEXT NOT NULL,  -- 'INSERT', 'UPDATE', 'DELETE'
                entry_id TEXT NOT NULL,
                committed_at TIMESTAMP NOT NULL DEFAULT {TIMESTAMP_SQL}
            )
        ''')

        cursor.execute('CREATE INDEX IF NOT EXISTS idx_schedule_entries_created_at ON schedule_entries(created_at DESC)')

        for event_type in CHANGE_EVENTS:
            row_ref = "OLD" if event_type == "DELETE" else "NEW"
            cursor.execute(f'''
                CREATE TRIGGER IF NOT EXISTS schedule_entries_after_{event_type.lower()}
                AFTER {event_type} ON schedule_entries
                BEGIN
                    INSERT INTO schedule_changes (table_name, event_type, entry_id)
                    VALUES ('schedule_entries', '{event_type}', {row_ref}.id);
                END
            ''')

        conn.commit()


def health_check():
    """Check database health."""
    try:
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table';")
            tables = cursor.fetchall()

            # Check if required tables exist
            table_names = [table[0] for table in tables]
            required_tables = ['schedule_entries', 'schedule_changes']

            return all(table in table_names for table in required_tables)
    except sqlite3.Error:
        return False
