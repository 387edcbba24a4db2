import logging
from typing import Any, Optional

from dynarecord.core_services.Database import Database

logger = logging.getLogger("orm.model")


def get_table_fields(db: Database, table_name: str) -> list[dict[str, Any]]:
    """
    Get all fields/columns of a database table.

    Returns:
        list[dict]: One dictionary per column, in ordinal order, with keys:
            - cid: Ordinal position
            - name: Column name
            - type: Declared type
            - notnull: 1 if the column is NOT NULL
            - dflt_value: Default value expression
            - pk: Position in the primary key (0 if not part of it)

    A table that does not exist yields an empty list.

    Example:
        for field in get_table_fields(db, "songs"):
            print(f"Column: {field['name']}, Type: {field['type']}")
    """
    return [dict(row) for row in db.table_info(table_name)]


def column_names_for(db: Database, table_name: str, fields: Optional[list[dict]] = None) -> list[str]:
    """
    Ordered column names of a table. Empty when the table does not exist.
    """
    if fields is None:
        fields = get_table_fields(db, table_name)
    names = [field.get("name") for field in fields]
    columns = [name for name in names if name]
    if len(columns) != len(names):
        logger.debug(f"Dropped {len(names) - len(columns)} unnamed column(s) from `{table_name}`")
    return columns


def primary_key_for(fields: list[dict]) -> Optional[str]:
    for field in sorted(fields, key=lambda f: f.get("pk") or 0):
        if field.get("pk") and field.get("name"):
            return field["name"]
    return None


def print_model(db: Database, table_name: str) -> str:
    """
    String representation of a table's structure.

    Example:
        print(print_model(db, "songs"))
    """
    fields = get_table_fields(db, table_name)
    if not fields:
        return "No fields found in table"

    lines = [f"Table: {table_name}", "-" * 40]
    for field in fields:
        flags = []
        if field.get("pk"):
            flags.append("PRIMARY KEY")
        if field.get("notnull"):
            flags.append("NOT NULL")
        if field.get("dflt_value") is not None:
            flags.append(f"DEFAULT {field['dflt_value']}")
        lines.append(f"{field['name']:<20} {field.get('type') or '':<10} {' '.join(flags)}".rstrip())
    return "\n".join(lines)
