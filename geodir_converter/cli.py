"""
Command line for the PhpMyDirectory → GeoDirectory converter.

Usage:
  geodir-convert convert listing [--removetable=success|error]
  geodir-convert convert category [--removetable]
  geodir-convert convert user
  geodir-convert convert review
  geodir-convert convert all
  geodir-convert load-csv pmd_listings dumps/pmd_listings.csv
  geodir-convert init-target --site-url https://example.com

``--removetable`` for listings drops the legacy table after the import:
``success`` only when no listing failed, ``error`` even when some did.
For categories the flag alone drops the table.

Every command reads ``config/converter_config.json`` unless ``--config``
points elsewhere.  Terminal errors are printed and exit with status 1.
"""

from __future__ import annotations

import argparse
from typing import List, Optional

import duckdb

from geodir_converter.conversion_tool import CONFIG_FILE, PmdConversionTool
from geodir_converter.extractors.csv_loader import load_csv_table
from geodir_converter.importers.pmd_importer import ImportResult
from geodir_converter.mappers.record_mapper import ListingProfile
from geodir_converter.stores.duckdb_store import DuckDBStore
from geodir_converter.stores.schema import create_target_schema
from geodir_converter.utils.errors import ConverterError


def _add_run_options(p: argparse.ArgumentParser) -> None:
    # Tri-state: --dry-run / --no-dry-run. Without either, the config decides.
    p.add_argument("--dry-run", dest="dry_run", action="store_true", help="Map records without writing them")
    p.add_argument("--no-dry-run", dest="dry_run", action="store_false", help="Force writing records")
    p.set_defaults(dry_run=None)
    p.add_argument("--limit", type=int, default=None, help="Process at most N rows per entity type")
    p.add_argument(
        "--profile",
        choices=[profile.value for profile in ListingProfile],
        default=None,
        help="Place-detail field set used for listings",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geodir-convert",
        description="Convert PhpMyDirectory data into GeoDirectory",
    )
    parser.add_argument("--config", default=CONFIG_FILE, help="Path of the JSON configuration file")
    commands = parser.add_subparsers(dest="command", required=True)

    convert = commands.add_parser("convert", help="Import PhpMyDirectory data")
    kinds = convert.add_subparsers(dest="kind", required=True)

    listing = kinds.add_parser("listing", help="Import listings")
    listing.add_argument(
        "--removetable",
        choices=["success", "error"],
        default=None,
        help="Drop the legacy listings table afterwards (success: only if nothing failed)",
    )
    _add_run_options(listing)

    category = kinds.add_parser("category", help="Import categories")
    category.add_argument("--removetable", action="store_true", help="Drop the legacy categories table afterwards")
    _add_run_options(category)

    user = kinds.add_parser("user", help="Import users")
    _add_run_options(user)

    review = kinds.add_parser("review", help="Import reviews as listing comments")
    _add_run_options(review)

    everything = kinds.add_parser("all", help="Import users, categories, listings and reviews, in that order")
    _add_run_options(everything)

    load = commands.add_parser("load-csv", help="Load a PhpMyDirectory CSV dump into the legacy database")
    load.add_argument("table", help="Legacy table name, e.g. pmd_listings")
    load.add_argument("path", help="CSV file")
    load.add_argument("--replace", action="store_true", help="Replace the table if it already exists")

    init = commands.add_parser("init-target", help="Create the WordPress/GeoDirectory tables in the target database")
    init.add_argument("--site-url", default=None, help="Record this site URL in the options table")

    return parser


def _print_results(results: List[ImportResult]) -> None:
    for result in results:
        print(f"Success: {result.summary()}")


def _convert(tool: PmdConversionTool, args: argparse.Namespace) -> int:
    overrides = {"dry_run": args.dry_run, "limit": args.limit, "profile": args.profile}
    kind = {
        "listing": "listings",
        "category": "categories",
        "user": "users",
        "review": "reviews",
        "all": "all",
    }[args.kind]

    remove = []
    keep_on_failure = False
    if args.kind == "category" and args.removetable:
        remove = ["categories"]
    elif args.kind == "listing" and args.removetable:
        remove = ["listings"]
        keep_on_failure = args.removetable == "success"

    results = tool.convert([kind], remove_tables=remove, keep_on_failure=keep_on_failure, **overrides)
    _print_results(results)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    tool = PmdConversionTool(config_file=args.config)

    try:
        if args.command == "convert":
            return _convert(tool, args)
        if args.command == "load-csv":
            with DuckDBStore.connect(tool.config["legacy"]["database"]) as legacy:
                count = load_csv_table(legacy, args.table, args.path, replace=args.replace)
            print(f"Success: loaded {count} rows into {args.table}")
            return 0
        if args.command == "init-target":
            if tool.target_is_mysql():
                raise ConverterError(
                    "init-target only creates a local DuckDB target. The WordPress MySQL database already has its tables."
                )
            with tool.open_target() as target:
                create_target_schema(
                    target,
                    prefix=tool.config["target"]["table_prefix"],
                    site_url=args.site_url or tool.config["target"].get("site_url") or "",
                )
            print(f"Success: target tables ready in {tool.config['target']['database']}")
            return 0
    except (ConverterError, FileNotFoundError, duckdb.Error) as e:
        tool.log_message(str(e), level="ERROR")
        print(f"Error: {e}")
        return 1
    return 1
