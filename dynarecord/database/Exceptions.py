from typing import Any


class DynaRecordError(Exception):
    """Base class for every error raised by dynarecord."""
    pass


class TableNotFound(DynaRecordError):
    def __init__(self, table_name: str, model: str = None):
        self.table_name = table_name
        self.model = model
        owner = f" (mapped by {model})" if model else ""
        super().__init__(f"Table '{table_name}'{owner} does not exist or has no columns")


class UnknownPropertyError(DynaRecordError):
    def __init__(self, model: str, property_name: Any):
        self.model = model
        self.property_name = property_name
        super().__init__(f"{model} has no property '{property_name}'")


class PersistenceError(DynaRecordError):
    """
    Raised when the storage engine rejects a statement.
    The original driver exception is kept on `engine_error`.
    """

    def __init__(self, message: str, sql: str = None, engine_error: Exception = None):
        self.sql = sql
        self.engine_error = engine_error
        super().__init__(message)


class DatabaseNotBound(DynaRecordError):
    def __init__(self, model: str):
        super().__init__(f"No database bound for {model}. Call ActiveRecord.bind(db) first.")


class RecordNotFound(DynaRecordError):
    def __init__(self, message="Query returned no results"):
        super().__init__(message)
