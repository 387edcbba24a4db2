from dynarecord.core_services.Database import Database
from dynarecord.database.ActiveRecord import ActiveRecord, find_by
from dynarecord.database.Naming import transform_word
from dynarecord.database.active_record.utils.Schema import column_names_for, print_model

SONGS_TABLE = """
CREATE TABLE IF NOT EXISTS songs (
    id INTEGER PRIMARY KEY,
    name TEXT,
    album TEXT
);
"""


def bootstrap(db: Database, script: str = SONGS_TABLE) -> None:
    """Create the sample schema."""
    db.executescript(script)
    print(f"✔ Schema ready in {db.connection_string}")


def drop(db: Database, table_name: str) -> None:
    if table_name not in _tables(db):
        print(f"⚠️ Table `{table_name}` does not exist.")
        return
    quoted = table_name.replace('"', '""')
    db.executescript(f'DROP TABLE "{quoted}";')
    print(f"✔ Table `{table_name}` dropped.")


def columns(db: Database, table_name: str, verbose: bool = False) -> list[str]:
    names = column_names_for(db, table_name)
    if not names:
        print(f"❌ Table `{table_name}` not found.")
    elif verbose:
        print(print_model(db, table_name))
    else:
        for name in names:
            print(name)
    return names


def find(db: Database, model_name: str, column: str, value: str) -> list[dict]:
    """Look records up through a model mapped on the fly, e.g. `song name Hello`."""
    ActiveRecord.bind(db)
    model = ActiveRecord.model_for(transform_word(model_name)["pascal_singular"])
    records = find_by(model, column, value)
    for record in records:
        print(record.to_dict())
    if not records:
        print(f"No {model.get_table()} where {column} = {value!r}")
    return records.to_list_dict()


def _tables(db: Database) -> list[str]:
    rows = db.query("SELECT name FROM sqlite_master WHERE type = 'table'")
    return [row["name"] for row in rows]
