import logging
import os
import pprint
from typing import Any

from dynarecord.database.QueryBuilder import QueryBuilder


class Database:
    """
    Storage boundary used by the models.

    A driver must be able to run DDL, list a table's columns in ordinal
    order, run parameterized statements, report the last inserted
    identity of its own connection and tell when the schema has changed.
    """
    connection = None
    connection_string: str = ""
    results = None

    def __init__(self, connection_string: str = None):
        if connection_string is not None:
            self.connection_string = connection_string
        self.logging_enabled = os.getenv("ORM_DEBUG", 'false').lower() == "true"
        self.logger = logging.getLogger("orm.sql")
        if not self.logger.handlers:  # prevent duplicate handlers
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s"
            ))
            self.logger.addHandler(handler)
        self.logger.setLevel(logging.DEBUG)

    def _log_query(self, sql: str, params: tuple, elapsed_ms: float):
        if self.logging_enabled:
            log_entry = {
                "event": "sql_query",
                "sql": sql,
                "params": params,
                "elapsed_ms": round(elapsed_ms, 2),
                "database": self.__class__.__name__,
            }
            self.logger.debug("\n" + pprint.pformat(log_entry, indent=2, width=80, compact=False) + "\n")

    class DotDict(dict):
        def __getattr__(self, key):
            return self.get(key)

        def __setattr__(self, key, value):
            self[key] = value

        def __delattr__(self, key):
            del self[key]

    @staticmethod
    def _normalize_args(query_str, args) -> tuple[str, tuple]:
        if isinstance(query_str, QueryBuilder):
            query_str, args = query_str.get()
            return query_str, tuple(args)

        if len(args) == 1 and isinstance(args[0], (list, tuple)):
            return query_str, tuple(args[0])
        return query_str, tuple(args)

    def requires_commit(self, query: str) -> bool:
        return query.lstrip().lower().startswith(("insert", "update", "delete", "create", "drop", "alter"))

    def connect(self):
        raise NotImplementedError

    def query(self, query_str: str | QueryBuilder, *args) -> list[dict[str, Any]]:
        raise NotImplementedError

    def execute(self, query_str: str | QueryBuilder, *args):
        raise NotImplementedError

    def executescript(self, script: str) -> None:
        raise NotImplementedError

    def table_info(self, table_name: str) -> list[dict[str, Any]]:
        raise NotImplementedError

    def last_insert_id(self) -> Any:
        raise NotImplementedError

    def schema_version(self) -> Any:
        raise NotImplementedError

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
