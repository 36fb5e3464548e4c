"""SQLite identity store for kryten-xboxlive.

Maps a chat nick to an Xbox Live (gamertag, xuid) pair. Each public method
is async and wraps a synchronous inner function via
asyncio.run_in_executor(None, _sync). A new connection is created per call
(WAL mode, 30s busy timeout, Row factory).

Gamertag and xuid live in one row and are written by a single UPSERT, so a
crash can never leave a nick with one half of an identity.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3

from .errors import StoreError, WriteError
from .models import Identity


class IdentityStore:
    """Durable nick → Identity mapping."""

    def __init__(self, db_path: str, logger: logging.Logger) -> None:
        self._db_path = db_path
        self._logger = logger

    def _get_connection(self) -> sqlite3.Connection:
        """Create a new SQLite connection with standard settings."""
        conn = sqlite3.connect(self._db_path, timeout=30)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA busy_timeout=30000")
        conn.row_factory = sqlite3.Row
        return conn

    # ══════════════════════════════════════════════════════════
    #  Initialization
    # ══════════════════════════════════════════════════════════

    async def initialize(self) -> None:
        """Create the identities table. Idempotent."""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._create_tables)

    def _create_tables(self) -> None:
        conn = self._get_connection()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS identities (
                    nick TEXT PRIMARY KEY,
                    display_name TEXT NOT NULL,
                    numeric_id TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            conn.commit()
        finally:
            conn.close()

    # ══════════════════════════════════════════════════════════
    #  Identity Operations
    # ══════════════════════════════════════════════════════════

    async def get(self, nick: str) -> Identity | None:
        """Return the stored identity for a nick, or None."""

        def _sync() -> Identity | None:
            conn = self._get_connection()
            try:
                row = conn.execute(
                    "SELECT nick, display_name, numeric_id FROM identities WHERE nick = ?",
                    (nick,),
                ).fetchone()
                if row is None or not row["numeric_id"]:
                    return None
                return Identity(
                    nick=row["nick"],
                    display_name=row["display_name"],
                    numeric_id=row["numeric_id"],
                )
            finally:
                conn.close()

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, _sync)
        except sqlite3.Error as e:
            raise StoreError(
                f"Identity read failed: {e}",
                operation="identity.get",
                target=nick,
            ) from e

    async def set(self, nick: str, display_name: str, numeric_id: str) -> Identity:
        """Store (or overwrite) the identity for a nick. Last write wins."""

        def _sync() -> None:
            conn = self._get_connection()
            try:
                conn.execute(
                    """
                    INSERT INTO identities (nick, display_name, numeric_id, updated_at)
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(nick) DO UPDATE SET
                        display_name = excluded.display_name,
                        numeric_id = excluded.numeric_id,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (nick, display_name, numeric_id),
                )
                conn.commit()
            finally:
                conn.close()

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, _sync)
        except sqlite3.Error as e:
            raise WriteError(
                f"Identity write failed: {e}",
                operation="identity.set",
                target=nick,
            ) from e

        self._logger.info("Stored identity for %s: %s (%s)", nick, display_name, numeric_id)
        return Identity(nick=nick, display_name=display_name, numeric_id=numeric_id)

    async def count(self) -> int:
        """Number of stored identities."""

        def _sync() -> int:
            conn = self._get_connection()
            try:
                row = conn.execute("SELECT COUNT(*) AS n FROM identities").fetchone()
                return row["n"]
            finally:
                conn.close()

        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, _sync)
        except sqlite3.Error as e:
            raise StoreError(
                f"Identity count failed: {e}",
                operation="identity.count",
            ) from e
