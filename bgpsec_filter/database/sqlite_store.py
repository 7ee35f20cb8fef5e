"""SQLite-backed SLURM BGPsec filter store"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from bgpsec_filter.models import FilterRecord
from .core import MAX_COMMENT_LENGTH, DatabaseManager
from .exceptions import StoreUnavailable
from .store import FilterSet, FilterStore

logger = logging.getLogger('bgpsec_filter.database.sqlite_store')


class SqliteFilterStore(FilterStore):
    """Durable filter store; every update runs inside one SQLite transaction"""

    def __init__(self, db_path: Union[str, Path], max_comment_length: int = MAX_COMMENT_LENGTH):
        super().__init__(min(max_comment_length, MAX_COMMENT_LENGTH))
        self.db = DatabaseManager(db_path)
        self._conn = None

    def next_id(self) -> int:
        try:
            with self.db.transaction(immediate=True) as conn:
                conn.execute(
                    "UPDATE slurm_counters SET value = value + 1 "
                    "WHERE name = 'next_filter_id'"
                )
                row = conn.execute(
                    "SELECT value FROM slurm_counters WHERE name = 'next_filter_id'"
                ).fetchone()
            return row['value'] - 1
        except sqlite3.Error as e:
            logger.error(f"Failed to allocate filter id: {e}")
            raise StoreUnavailable("Failed to allocate filter id", str(e))

    def read(self) -> FilterSet:
        try:
            rows = self.db.fetchall(
                """SELECT filter_id, asn, ski, comment
                   FROM bgpsec_filters
                   ORDER BY position"""
            )
        except sqlite3.Error as e:
            logger.error(f"Failed to read BGPsec filters: {e}")
            raise StoreUnavailable("Failed to read BGPsec filters", str(e))
        return self._to_filter_set(rows)

    @property
    def revision(self) -> int:
        try:
            row = self.db.fetchone(
                "SELECT value FROM slurm_counters WHERE name = 'bgpsec_revision'"
            )
        except sqlite3.Error as e:
            raise StoreUnavailable("Failed to read store revision", str(e))
        return row['value']

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            with self.db.transaction(immediate=True) as conn:
                self._conn = conn
                try:
                    yield
                finally:
                    self._conn = None
        except sqlite3.Error as e:
            logger.error(f"BGPsec filter transaction failed: {e}")
            raise StoreUnavailable("BGPsec filter transaction failed", str(e))

    def _load(self) -> FilterSet:
        rows = self._conn.execute(
            """SELECT filter_id, asn, ski, comment
               FROM bgpsec_filters
               ORDER BY position"""
        ).fetchall()
        return self._to_filter_set(rows)

    def _write(self, filters: FilterSet) -> None:
        self._conn.execute("DELETE FROM bgpsec_filters")
        self._conn.executemany(
            """INSERT INTO bgpsec_filters
               (filter_id, position, asn, ski, comment)
               VALUES (?, ?, ?, ?, ?)""",
            [
                (filter_id, position, record.asn, record.ski_hex, record.comment)
                for position, (filter_id, record) in enumerate(filters)
            ]
        )
        self._conn.execute(
            "UPDATE slurm_counters SET value = value + 1 "
            "WHERE name = 'bgpsec_revision'"
        )

    @staticmethod
    def _to_filter_set(rows) -> FilterSet:
        return tuple(
            (row['filter_id'], FilterRecord(asn=row['asn'], ski=row['ski'], comment=row['comment']))
            for row in rows
        )

    def close(self) -> None:
        self.db.close()
