import re
from typing import Any, List, Sequence, Tuple


class QueryBuilder:
    """
    Builds (sql, params) pairs for the SQLite driver.

    Identifiers (table and column names) are quoted and written into the SQL
    text; they must come from introspected schema. Values are always sent as
    `?` parameters.
    """
    __table__ = None

    placeholder = "?"

    def __init__(self):
        self.conditions: List[Tuple[str, str]] = []
        self.columns = ['*']
        self.order_by_clauses: List[Tuple[str, str]] = []
        self.limit_count = None
        self.parameters: List[Any] = []

    def _quote_column(self, col: str) -> str:
        if col == "*":
            return col
        return '"' + str(col).replace('"', '""') + '"'

    def table(self, table_name: str):
        self.__table__ = table_name
        return self

    def select(self, *columns):
        self.columns = []
        if isinstance(columns[0], list):
            columns = columns[0]

        for col in columns:
            self.columns.append(self._quote_column(col))
        return self

    def where(self, column, operator="=", value=None):
        if value is None and operator not in ["=", "!=", "<", "<=", ">", ">=", "<>", "LIKE", "IS", "IS NOT"]:
            value = operator
            operator = "="

        if isinstance(column, dict):
            for col, val in column.items():
                self.where(col, "=", val)
            return self

        if value is None and operator in ("=", "IS"):
            return self.where_null(column)
        if value is None and operator in ("!=", "<>", "IS NOT"):
            return self.where_not_null(column)

        self.conditions.append(("AND", f"{self._quote_column(column)} {operator} {self.placeholder}"))
        self.parameters.append(value)
        return self

    def where_null(self, column):
        self.conditions.append(('AND', f"{self._quote_column(column)} IS NULL"))
        return self

    def where_not_null(self, column):
        self.conditions.append(('AND', f"{self._quote_column(column)} IS NOT NULL"))
        return self

    def order_by(self, column, direction="asc"):
        direction = direction.upper()
        if direction not in ("ASC", "DESC"):
            raise ValueError(f"Invalid order direction: {direction}")
        self.order_by_clauses.append((self._quote_column(column), direction))
        return self

    def limit(self, count):
        self.limit_count = int(count)
        return self

    def insert(self, columns: Sequence[str], values: Sequence[Any]):
        """
        Generates a positional INSERT statement.

        :param columns: Column names, in the order the values are given.
        :param values: One value per column; None is sent as NULL.
        :return: (SQL string, parameter list)
        """
        if len(columns) != len(values):
            raise ValueError(f"Got {len(values)} values for {len(columns)} columns.")

        table = self._quote_column(self.__table__)
        if not columns:
            return f"INSERT INTO {table} DEFAULT VALUES", []

        quoted = ", ".join(self._quote_column(col) for col in columns)
        placeholders = ", ".join(self.placeholder for _ in columns)
        return f"INSERT INTO {table} ({quoted}) VALUES ({placeholders})", list(values)

    def update(self, values: dict[str, Any]):
        if not values:
            raise ValueError("No update values provided.")

        set_clause = ", ".join(f"{self._quote_column(k)} = {self.placeholder}" for k in values)
        where_clause = self._build_conditions()
        if not where_clause:
            raise ValueError("Unsafe update: missing WHERE clause.")

        sql = f"UPDATE {self._quote_column(self.__table__)} SET {set_clause}{where_clause}"
        return sql, list(values.values()) + self.parameters

    def _build_conditions(self):
        if not self.conditions:
            return ""
        result = " ".join(f"{logic} {expr}" for logic, expr in self.conditions)
        return " WHERE " + re.sub(r"^(AND |OR )", "", result)

    def to_sql(self):
        if not self.__table__:
            raise ValueError("No table specified for query.")

        sql = f"SELECT {', '.join(str(c) for c in self.columns)} FROM {self._quote_column(self.__table__)}"
        sql += self._build_conditions()

        if self.order_by_clauses:
            sql += " ORDER BY " + ", ".join(f"{col} {direction}" for col, direction in self.order_by_clauses)

        if self.limit_count is not None:
            sql += f" LIMIT {self.limit_count}"

        return sql.strip()

    def get(self):
        return self.to_sql(), self.parameters
