"""
Load PhpMyDirectory table dumps (CSV) into a local DuckDB legacy database.

Some hosts only hand over phpMyAdmin CSV exports of the PMD tables rather
than database access.  :func:`load_csv_table` reads such an export with
pandas and materializes it as a DuckDB table so the importer can read it
exactly like an attached MySQL database.
"""

from __future__ import annotations

import os

import pandas as pd

from geodir_converter.stores.duckdb_store import DuckDBStore, quote_identifier


def normalize_column(name: str) -> str:
    """Trim a CSV header.  Case is kept (PMD uses ``description_Short``)."""
    return name.strip().replace(" ", "_").replace("-", "_")


# Cells phpMyAdmin exports for SQL NULL
NULL_VALUES = ["", "NULL"]


def _is_integer_key(name: str, values: pd.Series) -> bool:
    if name != "id" and not name.endswith("_id"):
        return False
    present = values.dropna()
    # "0123" is text, not a number
    return bool(len(present)) and bool(present.str.fullmatch(r"0|-?[1-9][0-9]*").all())


def read_legacy_csv(csv_path: str) -> pd.DataFrame:
    """Read a CSV export as text and return a frame whose missing cells are ``None``.

    Every cell is read as a string (zip codes and phone numbers keep their
    leading zeros); the legacy models convert types.  Key columns (``id``,
    ``*_id``) holding plain integers are made numeric, so rows sort by id
    and lookups by id compare numbers.
    """
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False, na_values=NULL_VALUES)
    df.columns = [normalize_column(str(col)) for col in df.columns]
    for col in df.columns:
        if _is_integer_key(col, df[col]):
            df[col] = pd.to_numeric(df[col]).astype("Int64")
    return df.astype(object).where(pd.notna(df), None)


def load_csv_table(store: DuckDBStore, table: str, csv_path: str, *, replace: bool = False) -> int:
    """Create ``table`` in ``store`` from ``csv_path`` and return the row count.

    :param replace: Drop an existing table of the same name first.  When
        ``False`` an existing table is left untouched and ``0`` is returned.
    :raises FileNotFoundError: if ``csv_path`` does not exist.
    """
    if not os.path.exists(csv_path):
        raise FileNotFoundError(csv_path)

    if store.table_exists(table):
        if not replace:
            print(f"[INFO] Table '{table}' already exists. Nothing loaded.")
            return 0
        store.drop_table(table)

    df = read_legacy_csv(csv_path)
    view = f"_csv_{table}"
    store.con.register(view, df)
    try:
        store.execute(f"CREATE TABLE {store.qualify(table)} AS SELECT * FROM {quote_identifier(view)}")
    finally:
        store.con.unregister(view)
    print(f"[INFO] Table '{table}' created with {len(df)} rows.")
    return len(df)
