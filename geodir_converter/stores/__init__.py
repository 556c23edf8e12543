"""
Relational store for the conversion.

Both the PMD source and the WordPress target are accessed through
:class:`DuckDBStore`; :mod:`.schema` creates the target tables locally.
"""

from .duckdb_store import DuckDBStore
from .schema import create_target_schema, read_site_url, table_names

__all__ = ["DuckDBStore", "create_target_schema", "read_site_url", "table_names"]
