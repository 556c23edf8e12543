"""
Extractors for PhpMyDirectory exports.

This subpackage turns CSV dumps of PMD tables into tables of a local
DuckDB legacy database, which the importer then reads like any other
legacy store.
"""

from .csv_loader import load_csv_table, read_legacy_csv

__all__ = ["load_csv_table", "read_legacy_csv"]
