"""
Database connection and initialization for the durable store.
Creates the files and log tables when they do not exist yet.
"""

import sqlite3
from pathlib import Path

from mediaservice.errors import StorageError

REQUIRED_TABLES = ("files", "log")


def get_connection(db_path):
    """
    Create and return a SQLite database connection shared across threads.
    Callers are responsible for serializing access.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = sqlite3.connect(str(db_path), check_same_thread=False)
        conn.execute("PRAGMA foreign_keys = ON;")
    except sqlite3.Error as e:
        raise StorageError(f"can't open db {str(db_path)!r}: {e}") from e
    return conn


def initialize_db(conn):
    """
    Create the tables if they are missing. Existing data is left untouched.
    """
    try:
        conn.executescript("""
        CREATE TABLE IF NOT EXISTS files (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            url TEXT NOT NULL,
            hash TEXT NOT NULL,
            resolution TEXT NOT NULL DEFAULT '',
            bitrate TEXT NOT NULL DEFAULT '',
            UNIQUE (url, hash)
        );

        CREATE TABLE IF NOT EXISTS log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            file_id INTEGER NOT NULL REFERENCES files(id),
            status INTEGER NOT NULL,  -- 1 pending, 2 error, 3 failed, 4 completed
            message TEXT NOT NULL DEFAULT ''
        );

        CREATE INDEX IF NOT EXISTS idx_log_file_id ON log(file_id);
        """)
        conn.commit()
    except sqlite3.Error as e:
        raise StorageError(f"can't initialize db schema: {e}") from e


def verify_schema(conn):
    """
    Startup guard: raise StorageError if any required table is missing.
    """
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    except sqlite3.Error as e:
        raise StorageError(f"schema verification failed: {e}") from e

    existing = {row[0] for row in rows}
    missing = [table for table in REQUIRED_TABLES if table not in existing]
    if missing:
        raise StorageError(f"database not initialized, missing tables: {', '.join(missing)}")
