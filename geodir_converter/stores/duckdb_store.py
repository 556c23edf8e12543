"""
Relational store used for both sides of the conversion.

:class:`DuckDBStore` wraps a DuckDB connection and exposes the small set
of operations the importer needs: parameterized selects, single-row
inserts, existence checks and table introspection.  A store either owns
a local DuckDB database (a file or ``:memory:``) or reads a PMD MySQL
database attached through DuckDB's ``mysql`` extension, in which case
every table name is qualified with the attached catalog.

Usage example::

    from geodir_converter.stores import DuckDBStore

    target = DuckDBStore.connect("data/wordpress.duckdb")
    legacy = DuckDBStore.attach_mysql(host="localhost", database="pmd",
                                      user="pmd", password="secret")
    for row in legacy.iter_rows("pmd_categories", batch_size=100):
        ...
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import duckdb


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def mysql_secret_sql(
    name: str, *, host: str, database: str, user: str, password: str = "", port: int = 3306
) -> str:
    """Build the ``CREATE SECRET`` statement holding MySQL credentials.

    Every value is a quoted SQL literal, so passwords may contain spaces,
    quotes or ``=`` without breaking the statement.
    """
    return (
        f"CREATE OR REPLACE SECRET {quote_identifier(name)} ("
        f"TYPE mysql, HOST {quote_literal(host)}, PORT {int(port)}, "
        f"DATABASE {quote_literal(database)}, USER {quote_literal(user)}, "
        f"PASSWORD {quote_literal(password)})"
    )


class DuckDBStore:
    def __init__(self, con: duckdb.DuckDBPyConnection, *, catalog: Optional[str] = None) -> None:
        self.con = con
        self.catalog = catalog

    @classmethod
    def connect(cls, database: str = ":memory:", *, read_only: bool = False) -> "DuckDBStore":
        """Open (or create) a local DuckDB database."""
        if database != ":memory:":
            os.makedirs(os.path.dirname(database) or ".", exist_ok=True)
        return cls(duckdb.connect(database=database, read_only=read_only))

    @classmethod
    def attach_mysql(
        cls,
        *,
        host: str,
        database: str,
        user: str,
        password: str = "",
        port: int = 3306,
        alias: str = "legacy",
        read_only: bool = False,
    ) -> "DuckDBStore":
        """Attach a MySQL database and return a store scoped to it.

        :raises duckdb.Error: if the extension cannot be loaded or the
            connection is refused.
        """
        con = duckdb.connect()
        con.execute("INSTALL mysql")
        con.execute("LOAD mysql")
        secret = f"{alias}_secret"
        con.execute(
            mysql_secret_sql(secret, host=host, database=database, user=user, password=password, port=port)
        )
        options = f"TYPE mysql, SECRET {quote_identifier(secret)}"
        if read_only:
            options += ", READ_ONLY"
        con.execute(f"ATTACH '' AS {quote_identifier(alias)} ({options})")
        return cls(con, catalog=alias)

    def qualify(self, table: str) -> str:
        if self.catalog:
            return f"{quote_identifier(self.catalog)}.{quote_identifier(table)}"
        return quote_identifier(table)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def _catalog_filter(self) -> tuple:
        if self.catalog:
            return " AND table_catalog = ?", [self.catalog]
        return "", []

    def table_exists(self, table: str) -> bool:
        clause, params = self._catalog_filter()
        row = self.con.execute(
            f"SELECT count(*) FROM information_schema.tables WHERE table_name = ?{clause}",
            [table, *params],
        ).fetchone()
        return bool(row and row[0])

    def columns(self, table: str) -> List[str]:
        clause, params = self._catalog_filter()
        rows = self.con.execute(
            "SELECT column_name FROM information_schema.columns "
            f"WHERE table_name = ?{clause} ORDER BY ordinal_position",
            [table, *params],
        ).fetchall()
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def select_all(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Run ``query`` and return every row as a column → value mapping."""
        cur = self.con.execute(query, list(params or []))
        names = [d[0] for d in cur.description]
        return [dict(zip(names, row)) for row in cur.fetchall()]

    def iter_rows(self, table: str, *, batch_size: int = 500, order_by: str = "id") -> Iterator[Dict[str, Any]]:
        """Yield every row of ``table`` ordered by ``order_by``, one page at a time."""
        batch_size = max(1, int(batch_size))
        offset = 0
        query = f"SELECT * FROM {self.qualify(table)} ORDER BY {quote_identifier(order_by)} LIMIT ? OFFSET ?"
        while True:
            page = self.select_all(query, [batch_size, offset])
            if not page:
                return
            yield from page
            if len(page) < batch_size:
                return
            offset += batch_size

    def count(self, table: str) -> int:
        row = self.con.execute(f"SELECT count(*) FROM {self.qualify(table)}").fetchone()
        return int(row[0]) if row else 0

    def exists(self, table: str, column: str, value: Any) -> bool:
        row = self.con.execute(
            f"SELECT 1 FROM {self.qualify(table)} WHERE {quote_identifier(column)} = ? LIMIT 1",
            [value],
        ).fetchone()
        return row is not None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, table: str, row: Dict[str, Any], *, id_column: Optional[str] = None) -> Any:
        """Insert one row and return its id (the value of ``id_column``).

        Values are bound as parameters; DuckDB casts them to the column
        types declared by the table.

        :raises duckdb.Error: if the insert is rejected.
        """
        if not row:
            raise ValueError(f"Refusing to insert an empty row into {table}")
        names = ", ".join(quote_identifier(c) for c in row)
        placeholders = ", ".join("?" for _ in row)
        self.con.execute(
            f"INSERT INTO {self.qualify(table)} ({names}) VALUES ({placeholders})",
            list(row.values()),
        )
        return row.get(id_column) if id_column else None

    @contextmanager
    def transaction(self) -> Iterator["DuckDBStore"]:
        """Run the enclosed writes as one unit: all of them are kept or none.

        :raises duckdb.Error: re-raised after the rollback.
        """
        self.con.begin()
        try:
            yield self
        except BaseException:
            self.con.rollback()
            raise
        self.con.commit()

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> None:
        self.con.execute(sql, list(params or []))

    def drop_table(self, table: str) -> None:
        self.con.execute(f"DROP TABLE IF EXISTS {self.qualify(table)}")

    def close(self) -> None:
        self.con.close()

    def __enter__(self) -> "DuckDBStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
