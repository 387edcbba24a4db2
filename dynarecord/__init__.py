from dynarecord.core_services.Database import Database
from dynarecord.core_services.Sqlite3Database import Sqlite3Database
from dynarecord.database.ActiveRecord import ActiveRecord, find_by, save
from dynarecord.database.Exceptions import (
    DatabaseNotBound,
    DynaRecordError,
    PersistenceError,
    RecordNotFound,
    TableNotFound,
    UnknownPropertyError,
)
from dynarecord.database.ModelDescriptor import ModelDescriptor, construct, install_accessors
from dynarecord.database.Naming import table_name_for
from dynarecord.database.active_record.utils.Schema import column_names_for, get_table_fields
from dynarecord.database.active_record.utils.decorators import on, table

__all__ = [
    "ActiveRecord",
    "Database",
    "DatabaseNotBound",
    "DynaRecordError",
    "ModelDescriptor",
    "PersistenceError",
    "RecordNotFound",
    "Sqlite3Database",
    "TableNotFound",
    "UnknownPropertyError",
    "column_names_for",
    "construct",
    "find_by",
    "get_table_fields",
    "install_accessors",
    "on",
    "save",
    "table",
    "table_name_for",
]
