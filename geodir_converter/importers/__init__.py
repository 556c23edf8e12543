"""
Import drivers.

:class:`PmdImporter` moves PhpMyDirectory users, categories and listings
into a WordPress / GeoDirectory database.
"""

from .pmd_importer import KIND_ORDER, ImportResult, PmdImporter, normalize_kinds

__all__ = ["KIND_ORDER", "ImportResult", "PmdImporter", "normalize_kinds"]
