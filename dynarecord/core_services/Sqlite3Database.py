import os
import sqlite3
import time
from typing import Any

from dotenv import load_dotenv

from dynarecord.core_services.Database import Database
from dynarecord.database.Exceptions import PersistenceError
from dynarecord.database.QueryBuilder import QueryBuilder

load_dotenv()


def dict_factory(cursor, row):
    """Convert row to dictionary."""
    return Database.DotDict({col[0]: row[idx] for idx, col in enumerate(cursor.description)})


class Sqlite3Database(Database):
    connection: sqlite3.Connection = None
    connection_string: str = ":memory:"
    results: list[dict[str, Any]] = []

    @classmethod
    def from_env(cls) -> "Sqlite3Database":
        return cls(os.getenv("DATABASE_PATH", ":memory:"))

    def connect(self) -> sqlite3.Connection:
        if self.connection is None:
            try:
                self.connection = sqlite3.connect(self.connection_string)
            except sqlite3.Error as e:
                self.logger.error(f"Could not open {self.connection_string}: {e}")
                raise PersistenceError(str(e), engine_error=e) from e
            self.connection.row_factory = dict_factory
        return self.connection

    def _run(self, query_str: str, args: tuple) -> sqlite3.Cursor:
        connection = self.connect()
        start_time = time.perf_counter()
        try:
            cursor = connection.execute(query_str, args)
        except sqlite3.Error as e:
            self.logger.error(f"{type(e).__name__}: {e} | {query_str} {args}")
            if connection.in_transaction:
                connection.rollback()
            raise PersistenceError(str(e), sql=query_str, engine_error=e) from e
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        self._log_query(query_str, args, elapsed_ms)
        return cursor

    def query(self, query_str: str | QueryBuilder, *args) -> list[dict[str, Any]]:
        query_str, args = self._normalize_args(query_str, args)
        cursor = self._run(query_str, args)
        self.results = cursor.fetchall()
        return self.results

    def execute(self, query_str: str | QueryBuilder, *args) -> sqlite3.Cursor:
        """Run a write statement and commit it."""
        query_str, args = self._normalize_args(query_str, args)
        cursor = self._run(query_str, args)
        if self.requires_commit(query_str):
            self.connection.commit()
        return cursor

    def executescript(self, script: str) -> None:
        connection = self.connect()
        start_time = time.perf_counter()
        try:
            connection.executescript(script)
        except sqlite3.Error as e:
            self.logger.error(f"{type(e).__name__}: {e}")
            raise PersistenceError(str(e), sql=script, engine_error=e) from e
        self._log_query(script, (), (time.perf_counter() - start_time) * 1000)

    def table_info(self, table_name: str) -> list[dict[str, Any]]:
        # Ordered by ordinal position; a missing table yields no rows.
        return self.query(
            'SELECT cid, name, type, "notnull", dflt_value, pk FROM pragma_table_info(?) ORDER BY cid',
            table_name,
        )

    def last_insert_id(self) -> int:
        # last_insert_rowid() is scoped to this connection.
        return self.query("SELECT last_insert_rowid() AS id")[0]["id"]

    def schema_version(self) -> int:
        # SQLite bumps the schema cookie on every CREATE, ALTER and DROP.
        return self._run("PRAGMA schema_version", ()).fetchone()["schema_version"]
