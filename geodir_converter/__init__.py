"""
Top-level package for the PhpMyDirectory → GeoDirectory converter.

This package bundles everything needed to read a PhpMyDirectory (PMD)
database, translate its listings, categories and users into WordPress and
GeoDirectory records, and write them into the target database.  Modules
are split into subpackages:

* :mod:`geodir_converter.models` – typed legacy and target records
* :mod:`geodir_converter.mappers` – pure legacy → target field mapping
* :mod:`geodir_converter.stores` – relational store and target schema
* :mod:`geodir_converter.extractors` – loading legacy CSV dumps
* :mod:`geodir_converter.importers` – the import driver
* :mod:`geodir_converter.utils` – error taxonomy and run reports

Each layer has no direct knowledge of configuration or execution
strategy; orchestration is handled in :mod:`geodir_converter.conversion_tool`,
the command line in :mod:`geodir_converter.cli` and the step-based flow in
:mod:`geodir_converter.wizard`.
"""

__version__ = "1.0.0"
