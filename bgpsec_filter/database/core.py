"""Core database connection and schema management with thread-local connections"""
import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Union

from .exceptions import SchemaError

logger = logging.getLogger('bgpsec_filter.database.core')

# Schema version for migrations
SCHEMA_VERSION = 1

# Upper bound for filter comments enforced by the schema
MAX_COMMENT_LENGTH = 500


class DatabaseManager:
    """Thread-safe SQLite database manager with one connection per thread"""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SchemaError(f"Cannot create database directory for {self.db_path}", str(e))
        self._init_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection"""
        conn = getattr(self._local, 'conn', None)
        if conn is None:
            conn = sqlite3.connect(
                str(self.db_path),
                isolation_level='DEFERRED',
                timeout=30.0,
                check_same_thread=False
            )
            conn.execute('PRAGMA journal_mode=WAL')
            conn.execute('PRAGMA foreign_keys=ON')
            conn.row_factory = sqlite3.Row
            self._local.conn = conn
            with self._connections_lock:
                self._connections.append(conn)
        return conn

    def _init_database(self):
        """Initialize database with schema and migrations"""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to open database {self.db_path}", str(e))
        try:
            current_version = conn.execute('PRAGMA user_version').fetchone()[0]

            if current_version < SCHEMA_VERSION:
                self._migrate_schema(conn, current_version)

            conn.execute(f'PRAGMA user_version={SCHEMA_VERSION}')
            conn.commit()
            logger.info(f"Database {self.db_path} initialized at version {SCHEMA_VERSION}")
        except sqlite3.Error as e:
            raise SchemaError(f"Failed to initialize database {self.db_path}", str(e))
        finally:
            conn.close()

    def _migrate_schema(self, conn: sqlite3.Connection, from_version: int):
        """Run schema migrations"""
        if from_version < 1:
            conn.executescript(f'''
                CREATE TABLE IF NOT EXISTS bgpsec_filters (
                    filter_id INTEGER PRIMARY KEY
                        CHECK(filter_id >= 0),
                    position INTEGER NOT NULL,
                    asn INTEGER
                        CHECK(asn IS NULL OR
                              (asn >= 0 AND asn <= 4294967295)),
                    ski TEXT CHECK(ski IS NULL OR length(ski) > 0),
                    comment TEXT
                        CHECK(length(comment) <= {MAX_COMMENT_LENGTH}),
                    created_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    CHECK(asn IS NOT NULL OR ski IS NOT NULL)
                );

                CREATE TABLE IF NOT EXISTS slurm_counters (
                    name TEXT PRIMARY KEY,
                    value INTEGER NOT NULL CHECK(value >= 0)
                );

                INSERT OR IGNORE INTO slurm_counters (name, value)
                    VALUES ('next_filter_id', 0);
                INSERT OR IGNORE INTO slurm_counters (name, value)
                    VALUES ('bgpsec_revision', 0);

                CREATE INDEX IF NOT EXISTS idx_bgpsec_filters_position
                    ON bgpsec_filters(position);
            ''')
            logger.info("Applied migration: initial SLURM BGPsec filter schema")

    @contextmanager
    def transaction(self, immediate: bool = False):
        """
        Context manager for atomic transactions

        Args:
            immediate: Take the write lock up front (BEGIN IMMEDIATE) so a
                read-then-write transaction cannot fail on a stale WAL snapshot
        """
        conn = self._get_connection()
        began = False
        if immediate and not conn.in_transaction:
            conn.execute("BEGIN IMMEDIATE")
            began = True
        savepoint = f"sp_{threading.get_ident()}_{id(conn)}"
        conn.execute(f"SAVEPOINT {savepoint}")
        try:
            yield conn
        except BaseException:
            conn.execute(f"ROLLBACK TO {savepoint}")
            conn.execute(f"RELEASE {savepoint}")
            if began:
                conn.rollback()
            raise
        else:
            conn.execute(f"RELEASE {savepoint}")
            conn.commit()

    def fetchone(
            self, query: str, params: tuple = ()
    ) -> Optional[sqlite3.Row]:
        """Fetch one row"""
        conn = self._get_connection()
        return conn.execute(query, params).fetchone()

    def fetchall(self, query: str, params: tuple = ()) -> list:
        """Fetch all rows"""
        conn = self._get_connection()
        return conn.execute(query, params).fetchall()

    def close(self):
        """Close every connection opened by this manager"""
        with self._connections_lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            conn.close()
        self._local = threading.local()
