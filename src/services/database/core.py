"""
RouletteBot - Database Core
===========================

Base database class with connection management and table initialization.
"""

import os
import shutil
import sqlite3
import time
from contextlib import contextmanager
from typing import Generator, Optional

from src.core.config import config
from src.core.logger import logger
from src.services.roulette.errors import (
    ContentionError,
    DatabaseUnavailableError,
    PersistenceFailure,
)


# How long SQLite itself waits on a locked database before giving up (seconds)
BUSY_TIMEOUT = 2.0

CORRUPTION_MARKERS = (
    "disk i/o error",
    "database disk image is malformed",
    "file is not a database",
    "file is encrypted",
    "unable to open database",
)

BUSY_MARKERS = (
    "database is locked",
    "database is busy",
)


class DatabaseCore:
    """Base database class with connection management."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        """Initialize database connection and create tables if needed."""
        self.db_path = db_path or config.DATABASE_PATH
        self._healthy = True
        self._corruption_reason: Optional[str] = None
        self._init_db()

    @property
    def is_healthy(self) -> bool:
        """Check if database is healthy and operational."""
        return self._healthy

    @property
    def corruption_reason(self) -> Optional[str]:
        """Get the reason for database corruption if unhealthy."""
        return self._corruption_reason

    def require_healthy(self) -> None:
        """Raise DatabaseUnavailableError if database is unhealthy.

        Use this at service startup to fail fast if DB is corrupted.
        """
        if not self._healthy:
            raise DatabaseUnavailableError(
                f"Database is unhealthy: {self._corruption_reason or 'Unknown error'}. "
                "Manual intervention required - check logs for backup location."
            )

    def _check_integrity(self) -> bool:
        """Check database integrity. Returns True if healthy."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=10.0)
            try:
                result = conn.execute("PRAGMA integrity_check").fetchone()
            finally:
                conn.close()
            return result[0] == "ok"
        except sqlite3.DatabaseError as e:
            logger.error_tree("DB Integrity Check Failed", e)
            return False

    def _backup_corrupted(self) -> None:
        """Backup corrupted database file."""
        backup_path = f"{self.db_path}.corrupted.{int(time.time())}"
        try:
            shutil.copy2(self.db_path, backup_path)
            logger.tree("Corrupted DB Backed Up", [
                ("Backup", backup_path),
            ], emoji="💾")
        except OSError as e:
            logger.error_tree("DB Backup Failed", e)

    def _mark_corrupted(self, error: sqlite3.DatabaseError) -> None:
        self._healthy = False
        self._corruption_reason = str(error)
        logger.error_tree("Database Corruption Detected", error)
        self._backup_corrupted()

    @contextmanager
    def _get_conn(self, immediate: bool = False) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection context manager.

        Commits when the block exits cleanly and rolls back otherwise.
        With ``immediate=True`` the block runs inside ``BEGIN IMMEDIATE``, so
        the write lock is taken before any read and the whole block is one
        atomic unit.

        Raises:
            DatabaseUnavailableError: If the database is unhealthy.
            ContentionError: If the database stayed locked past the busy timeout.
            PersistenceFailure: On any other SQLite error.
        """
        if not self._healthy:
            logger.tree("Database Unhealthy", [
                ("Status", "Operation rejected"),
                ("Reason", self._corruption_reason or "Unknown"),
            ], emoji="⚠️")
            raise DatabaseUnavailableError(
                f"Database is unavailable: {self._corruption_reason or 'unhealthy'}"
            )

        conn = None
        try:
            conn = sqlite3.connect(
                self.db_path,
                timeout=BUSY_TIMEOUT,
                isolation_level=None if immediate else "",
            )
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA synchronous = FULL")
            if immediate:
                conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.rollback()
                raise
            if immediate:
                conn.execute("COMMIT")
            else:
                conn.commit()
        except sqlite3.DatabaseError as e:
            if conn is not None and conn.in_transaction:
                try:
                    conn.rollback()
                except sqlite3.Error:
                    pass
            error_msg = str(e).lower()
            if any(marker in error_msg for marker in CORRUPTION_MARKERS):
                self._mark_corrupted(e)
                raise DatabaseUnavailableError(f"Database is unavailable: {e}") from e
            if any(marker in error_msg for marker in BUSY_MARKERS):
                logger.tree("Database Busy", [
                    ("Message", str(e)[:100]),
                ], emoji="⏳")
                raise ContentionError(f"Database busy: {e}") from e
            logger.tree("Database Error", [
                ("Type", type(e).__name__),
                ("Message", str(e)[:100]),
            ], emoji="⚠️")
            raise PersistenceFailure(f"{type(e).__name__}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def _init_db(self) -> None:
        """Initialize database tables."""
        logger.tree("Database Init", [
            ("Path", self.db_path),
            ("Status", "Starting"),
        ], emoji="🗄️")

        # Check integrity on startup
        if os.path.exists(self.db_path) and not self._check_integrity():
            self._corruption_reason = "PRAGMA integrity_check failed on startup"
            logger.tree("DATABASE CORRUPTION DETECTED", [
                ("Path", self.db_path),
                ("Status", "INTEGRITY CHECK FAILED"),
                ("Action", "Creating backup - MANUAL INTERVENTION REQUIRED"),
            ], emoji="🚨")
            self._backup_corrupted()
            self._healthy = False
            logger.tree("MANUAL FIX REQUIRED", [
                ("Backup", f"{self.db_path}.corrupted.*"),
                ("Action", "Restore from backup or delete the database to recreate"),
                ("Warning", "Draws will fail until the database is fixed"),
            ], emoji="⚠️")
            return

        with self._get_conn() as conn:
            cur = conn.cursor()

            # WAL lets history reads proceed while a draw is being written
            cur.execute("PRAGMA journal_mode = WAL")

            # =====================================================================
            # Pool Tables
            # =====================================================================

            cur.execute("""
                CREATE TABLE IF NOT EXISTS pools (
                    pool_id TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    name TEXT,
                    description TEXT,
                    exclusion_json TEXT,
                    entries_json TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    PRIMARY KEY (pool_id, version)
                )
            """)

            # =====================================================================
            # Draw History Tables
            # =====================================================================

            cur.execute("""
                CREATE TABLE IF NOT EXISTS draw_history (
                    pool_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    sequence_no INTEGER NOT NULL,
                    pool_version INTEGER NOT NULL,
                    entry_id TEXT NOT NULL,
                    timestamp REAL NOT NULL,
                    PRIMARY KEY (pool_id, user_id, sequence_no)
                )
            """)

            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_draw_history_time
                ON draw_history(pool_id, user_id, timestamp)
            """)

            # Last issued sequence number per key, so numbers are never reused
            cur.execute("""
                CREATE TABLE IF NOT EXISTS draw_sequences (
                    pool_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    last_sequence_no INTEGER NOT NULL,
                    PRIMARY KEY (pool_id, user_id)
                )
            """)

            # =====================================================================
            # Draw Preference Tables
            # =====================================================================

            cur.execute("""
                CREATE TABLE IF NOT EXISTS draw_preferences (
                    pool_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    kind TEXT NOT NULL CHECK (kind IN ('exclude', 'target')),
                    entry_id TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    PRIMARY KEY (pool_id, user_id, kind, entry_id)
                )
            """)

        logger.tree("Database Initialized", [
            ("Tables", "pools, draw_history, draw_sequences, draw_preferences"),
            ("Status", "Ready"),
        ], emoji="✅")
