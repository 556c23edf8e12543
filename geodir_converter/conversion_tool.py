"""
High-level orchestration of the PhpMyDirectory → GeoDirectory conversion.

This module defines a :class:`PmdConversionTool` class that ties together
configuration, the two database stores and the import driver.  It is
used by the command line and can build an :class:`ImportWizard` for the
step-based flow.

Configuration is supplied via a JSON file path or directly as a
dictionary.  The ``target`` section describes the WordPress database (a
local DuckDB file, or the site's MySQL database under ``target.mysql``), the
``legacy`` section the PhpMyDirectory database (a local DuckDB file, or a
MySQL server under ``legacy.mysql``), and ``conversion`` holds run options
such as ``dry_run`` and ``limit``.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterable, List, Optional

from geodir_converter.importers.pmd_importer import ImportResult, PmdImporter
from geodir_converter.mappers.record_mapper import ListingProfile
from geodir_converter.stores.duckdb_store import DuckDBStore
from geodir_converter.stores.schema import read_site_url, table_names
from geodir_converter.utils.errors import ConfigurationMissingError
from geodir_converter.wizard import ImportWizard

CONFIG_FILE = "config/converter_config.json"
LOG_DIR = os.path.join("reports", "conversion")


class PmdConversionTool:
    """
    Main entry point for converting PhpMyDirectory data to GeoDirectory.
    This class is responsible for reading configuration, opening the
    source and target databases and running the importer.  Per-record
    outcomes are recorded by :mod:`geodir_converter.utils.errors`.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> None:
        if config_file and os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                config = json.load(f)
        elif config is None:
            # Default configuration
            config = {}

        # Ensure essential keys exist to prevent KeyErrors
        config.setdefault("target", {})
        config["target"].setdefault("database", "data/wordpress.duckdb")
        config["target"].setdefault("table_prefix", "wp_")
        config["target"].setdefault("site_url", os.getenv("GEODIR_SITE_URL", ""))
        config["target"].setdefault("mysql", {})
        wp_mysql = config["target"]["mysql"]
        wp_mysql.setdefault("host", os.getenv("WP_DB_HOST", ""))
        wp_mysql.setdefault("database", os.getenv("WP_DB_NAME", ""))
        wp_mysql.setdefault("user", os.getenv("WP_DB_USER", ""))
        wp_mysql.setdefault("password", os.getenv("WP_DB_PASSWORD", ""))
        wp_mysql.setdefault("port", 3306)

        config.setdefault("legacy", {})
        config["legacy"].setdefault("database", "data/pmd.duckdb")
        config["legacy"].setdefault("table_prefix", "pmd_")
        config["legacy"].setdefault("mysql", {})
        mysql = config["legacy"]["mysql"]
        mysql.setdefault("host", os.getenv("PMD_DB_HOST", ""))
        mysql.setdefault("database", os.getenv("PMD_DB_NAME", ""))
        mysql.setdefault("user", os.getenv("PMD_DB_USER", ""))
        mysql.setdefault("password", os.getenv("PMD_DB_PASSWORD", ""))
        mysql.setdefault("port", 3306)

        config.setdefault("conversion", {})
        config["conversion"].setdefault("dry_run", False)
        config["conversion"].setdefault("limit", None)
        config["conversion"].setdefault("batch_size", 500)
        config["conversion"].setdefault("listing_profile", ListingProfile.IMPORTER.value)

        self.config = config

    def log_message(self, message: str, level: str = "INFO") -> None:
        print(f"[{level}] {message}")
        # Append to log file
        os.makedirs(LOG_DIR, exist_ok=True)
        with open(os.path.join(LOG_DIR, "conversion.log"), "a", encoding="utf-8") as f:
            f.write(f"{level}: {message}\n")

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    def target_is_mysql(self) -> bool:
        return bool(self.config["target"]["mysql"].get("host"))

    def _attach(self, section: str, alias: str, label: str) -> DuckDBStore:
        mysql = self.config[section]["mysql"]
        if not mysql.get("database") or not mysql.get("user"):
            raise ConfigurationMissingError(
                f"{section}.mysql needs 'database' and 'user' when 'host' is set."
            )
        self.log_message(f"Connecting to {label} MySQL database '{mysql['database']}' on {mysql['host']}")
        return DuckDBStore.attach_mysql(
            host=mysql["host"],
            database=mysql["database"],
            user=mysql["user"],
            password=mysql.get("password", ""),
            port=mysql.get("port", 3306),
            alias=alias,
        )

    def open_target(self) -> DuckDBStore:
        """Attach the WordPress MySQL database when configured, else open the local target file."""
        if self.target_is_mysql():
            return self._attach("target", "wordpress", "WordPress")
        return DuckDBStore.connect(self.config["target"]["database"])

    def open_legacy(self) -> DuckDBStore:
        """Attach the MySQL server when one is configured, else open the local legacy file."""
        if self.config["legacy"]["mysql"].get("host"):
            return self._attach("legacy", "legacy", "PhpMyDirectory")
        path = self.config["legacy"]["database"]
        if path != ":memory:" and not os.path.exists(path):
            raise ConfigurationMissingError(
                f"PhpMyDirectory database not found at '{path}'. Configure legacy.database or legacy.mysql."
            )
        return DuckDBStore.connect(path)

    def resolve_site_url(self, target: DuckDBStore) -> str:
        site_url = self.config["target"].get("site_url") or ""
        if not site_url:
            site_url = read_site_url(target, prefix=self.config["target"]["table_prefix"])
            if site_url:
                self.log_message(f"Using site URL from the target options table: {site_url}", level="DEBUG")
        return site_url

    def check_target(self, target: DuckDBStore) -> None:
        """Make sure the target database has the WordPress tables before writing."""
        prefix = self.config["target"]["table_prefix"]
        missing = [t for t in table_names(prefix).values() if t != f"{prefix}options" and not target.table_exists(t)]
        if missing:
            raise ConfigurationMissingError(
                f"Target database is missing tables: {', '.join(missing)}. Run 'geodir-convert init-target' first."
            )

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def importer_options(self, **overrides: Any) -> Dict[str, Any]:
        conversion = self.config["conversion"]
        options = {
            "profile": ListingProfile(conversion.get("listing_profile") or ListingProfile.IMPORTER.value),
            "dry_run": bool(conversion.get("dry_run")),
            "limit": conversion.get("limit"),
            "batch_size": conversion.get("batch_size") or 500,
            "log": self.log_message,
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return options

    def build_importer(self, target: DuckDBStore, legacy: DuckDBStore, **overrides: Any) -> PmdImporter:
        return PmdImporter(
            target,
            legacy,
            site_url=self.resolve_site_url(target),
            legacy_prefix=self.config["legacy"]["table_prefix"],
            target_prefix=self.config["target"]["table_prefix"],
            **self.importer_options(**overrides),
        )

    def convert(
        self,
        kinds: Iterable[str],
        *,
        remove_tables: Iterable[str] = (),
        keep_on_failure: bool = False,
        **overrides: Any,
    ) -> List[ImportResult]:
        """Run the import for ``kinds`` and optionally drop legacy tables afterwards.

        :param kinds: Entity types, e.g. ``["listings"]`` or ``["all"]``.
        :param remove_tables: Kinds whose legacy table is dropped once imported.
        :param keep_on_failure: Keep the legacy tables when any record failed.
        :param overrides: Importer options taking precedence over the config
            (``dry_run``, ``limit``, ``profile``...).
        :raises ConverterError: on a terminal error.
        """
        kinds = list(kinds)
        self.log_message(f"Starting PhpMyDirectory conversion: {', '.join(kinds)}")
        with self.open_target() as target, self.open_legacy() as legacy:
            self.check_target(target)
            importer = self.build_importer(target, legacy, **overrides)
            if len(kinds) == 1 and kinds[0] != "all":
                results = [importer.import_kind(kinds[0])]
            else:
                results = importer.run(kinds)
            failed = sum(r.failed for r in results)
            for kind in remove_tables:
                if keep_on_failure and failed:
                    self.log_message(f"Keeping legacy {kind} table: {failed} records failed.", level="WARNING")
                    continue
                importer.remove_legacy_table(kind)
        for result in results:
            self.log_message(result.summary())
        self.log_message("Conversion finished.")
        return results

    def wizard(self, target: DuckDBStore, **kwargs: Any) -> ImportWizard:
        options = self.importer_options()
        return ImportWizard(
            target,
            site_url=self.resolve_site_url(target),
            target_prefix=self.config["target"]["table_prefix"],
            importer_options=options,
            **kwargs,
        )
