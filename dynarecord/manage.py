import argparse
import os

from dynarecord.cli.database import bootstrap, columns, drop, find
from dynarecord.core_services.Sqlite3Database import Sqlite3Database
from dynarecord.database.Exceptions import DynaRecordError


def main(argv=None):
    parser = argparse.ArgumentParser(description="dynarecord database tool")
    parser.add_argument("--database", default=os.getenv("DATABASE_PATH", ":memory:"),
                        help="SQLite database file (defaults to $DATABASE_PATH)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("db:bootstrap", help="Create the sample songs table")

    drop_parser = subparsers.add_parser("db:drop", help="Drop a table")
    drop_parser.add_argument("table", help="Table name")

    columns_parser = subparsers.add_parser("db:columns", help="List a table's columns in ordinal order")
    columns_parser.add_argument("table", help="Table name")
    columns_parser.add_argument("--verbose", "-v", action="store_true", help="Show types and constraints")

    find_parser = subparsers.add_parser("db:find", help="Find records of a model by one column")
    find_parser.add_argument("model", help="Model name, e.g. Song")
    find_parser.add_argument("column", help="Column to match")
    find_parser.add_argument("value", help="Value to match")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    with Sqlite3Database(args.database) as db:
        try:
            if args.command == "db:bootstrap":
                bootstrap(db)

            elif args.command == "db:drop":
                drop(db, args.table)

            elif args.command == "db:columns":
                if not columns(db, args.table, verbose=args.verbose):
                    return 1

            elif args.command == "db:find":
                find(db, args.model, args.column, args.value)

        except DynaRecordError as e:
            print(f"❌ {e}")
            return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
