"""SQLite index of (root, module code, binary) associations."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from lmc.cache.models import BinaryEntry
from lmc.common.errors import IndexStoreError

logger = logging.getLogger(__name__)

SCHEMA = (
    "CREATE TABLE IF NOT EXISTS binaries (root TEXT, code TEXT, bin TINYTEXT)",
    "CREATE INDEX IF NOT EXISTS idx_binaries_bin ON binaries (bin)",
)

SQL_INSERT = "INSERT INTO binaries (root, code, bin) VALUES (?, ?, ?)"
SQL_SEARCH_EXACT = "SELECT root, code, bin FROM binaries WHERE bin = ?"
SQL_SEARCH_SIMILAR = "SELECT root, code, bin FROM binaries WHERE instr(bin, ?) > 0"
SQL_SEARCH_SIMILAR_NOCASE = "SELECT root, code, bin FROM binaries WHERE instr(lower(bin), lower(?)) > 0"


class IndexStore:
    """Persistent table of binary entries.

    Rebuilds happen inside one transaction: rows are only replaced when the
    whole rebuild commits. Other connections keep reading the previous
    snapshot until then.
    """

    def __init__(self, db_path: str | Path, timeout: float = 60):
        self.db_path = str(db_path)
        try:
            # Transactions are managed explicitly with BEGIN/COMMIT.
            self.conn = sqlite3.connect(self.db_path, timeout=timeout, isolation_level=None)
            self.conn.execute("PRAGMA journal_mode=WAL")
            self._create_schema()
        except sqlite3.Error as err:
            raise IndexStoreError(f"failed to open database at {self.db_path}: {err}") from err

    def _create_schema(self) -> None:
        # Readers must be able to open while a rebuild holds the write lock.
        present = {
            name
            for (name,) in self.conn.execute(
                "SELECT name FROM sqlite_master WHERE name IN ('binaries', 'idx_binaries_bin')"
            )
        }
        if len(present) < 2:
            for statement in SCHEMA:
                self.conn.execute(statement)

    def __enter__(self) -> IndexStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def in_transaction(self) -> bool:
        return self.conn.in_transaction

    def begin_rebuild(self) -> None:
        """Start the build-wide transaction."""
        try:
            self.conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as err:
            raise IndexStoreError(f"failed to begin transaction: {err}") from err

    def clear(self) -> None:
        """Delete every binary entry."""
        try:
            self.conn.execute("DELETE FROM binaries")
        except sqlite3.Error as err:
            raise IndexStoreError(f"failed to flush binaries table: {err}") from err
        logger.debug("flushed all binaries from database")

    def insert(self, entry: BinaryEntry) -> None:
        try:
            self.conn.execute(SQL_INSERT, (entry.root, entry.code, entry.bin))
        except sqlite3.Error as err:
            raise IndexStoreError(f"error inserting {entry.bin} ({entry.code}): {err}") from err

    def commit_rebuild(self) -> None:
        """Commit the rebuild, rolling back if the commit fails."""
        try:
            self.conn.execute("COMMIT")
        except sqlite3.Error as err:
            self.abort_rebuild()
            raise IndexStoreError(f"failed to end transaction: {err}") from err

    def abort_rebuild(self) -> None:
        if self.conn.in_transaction:
            self.conn.execute("ROLLBACK")
            logger.warning("rebuild rolled back, previous index left intact")

    @contextmanager
    def rebuild(self) -> Iterator[IndexStore]:
        """Run a rebuild transaction, rolling back on any exception.

        Example:
            >>> with store.rebuild():
            ...     store.clear()
            ...     store.insert(entry)
        """
        self.begin_rebuild()
        try:
            yield self
        except BaseException:
            self.abort_rebuild()
            raise
        self.commit_rebuild()

    def _select(self, sql: str, param: str) -> list[BinaryEntry]:
        try:
            rows = self.conn.execute(sql, (param,)).fetchall()
        except sqlite3.Error as err:
            raise IndexStoreError(f"search failed: {err}") from err
        return [BinaryEntry(root=root, code=code, bin=bin_name) for root, code, bin_name in rows]

    def search_exact(self, bin_name: str) -> list[BinaryEntry]:
        """Rows whose binary name equals ``bin_name``."""
        return self._select(SQL_SEARCH_EXACT, bin_name)

    def search_similar(self, bin_name: str, ignore_case: bool = False) -> list[BinaryEntry]:
        """Rows whose binary name contains ``bin_name``.

        Matching is case-sensitive unless ``ignore_case`` is set, in which case
        ASCII letters are folded.
        """
        sql = SQL_SEARCH_SIMILAR_NOCASE if ignore_case else SQL_SEARCH_SIMILAR
        return self._select(sql, bin_name)

    def count(self) -> int:
        return self.conn.execute("SELECT count(*) FROM binaries").fetchone()[0]

    def close(self) -> None:
        """Close the database connection."""
        if self.conn.in_transaction:
            self.abort_rebuild()
        self.conn.close()
