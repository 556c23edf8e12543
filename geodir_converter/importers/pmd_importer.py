"""
Import driver: PhpMyDirectory tables → WordPress / GeoDirectory tables.

:class:`PmdImporter` reads one legacy table at a time, validates each row
into a typed record, skips records that already exist in the target
database, maps the rest with :mod:`geodir_converter.mappers.record_mapper`
and writes the results.  Both stores are passed in; nothing is looked up
from global state.

Entity kinds are always imported in the order ``users → categories →
listings → reviews`` because listings reference author and category ids
and reviews reference listings.  The rows of one record are written in a
single transaction, so a record is either fully imported or not at all.
There is no transaction around a whole table: records written before a
failure stay in place, and re-running the import skips them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from itertools import islice
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

import duckdb
from pydantic import ValidationError

from geodir_converter.mappers.record_mapper import (
    ListingProfile,
    map_category,
    map_category_meta,
    map_listing,
    map_review,
    map_role,
    map_user,
    map_user_meta,
)
from geodir_converter.models.legacy import LegacyCategory, LegacyListing, LegacyReview, LegacyUser
from geodir_converter.stores.duckdb_store import DuckDBStore
from geodir_converter.stores.schema import table_names
from geodir_converter.utils.errors import (
    ConfigurationMissingError,
    EmptySourceTableError,
    UnsupportedEntitySelectionError,
    report_error,
    report_ok,
)

KIND_ORDER = ("users", "categories", "listings", "reviews")

# Legacy table (without prefix) read for each kind
LEGACY_TABLES: Dict[str, str] = {
    "users": "users",
    "categories": "categories",
    "listings": "listings",
    "reviews": "reviews",
}

KIND_ALIASES: Dict[str, str] = {
    "user": "users",
    "category": "categories",
    "listing": "listings",
    "review": "reviews",
}

LogFn = Callable[..., None]


def _print_log(message: str, level: str = "INFO") -> None:
    print(f"[{level}] {message}")


def normalize_kinds(kinds: Iterable[str]) -> List[str]:
    """Validate an entity selection and return it in import order.

    :raises ConfigurationMissingError: if nothing is selected.
    :raises UnsupportedEntitySelectionError: for an unknown entity type.
    """
    selected = set()
    for kind in kinds:
        key = (kind or "").strip().lower()
        if not key:
            continue
        if key == "all":
            selected.update(KIND_ORDER)
            continue
        key = KIND_ALIASES.get(key, key)
        if key not in LEGACY_TABLES:
            raise UnsupportedEntitySelectionError(f"Unsupported entity type: {kind}")
        selected.add(key)
    if not selected:
        raise ConfigurationMissingError("Select at least one type of data to import.")
    return [kind for kind in KIND_ORDER if kind in selected]


@dataclass
class ImportResult:
    kind: str
    total: int = 0
    processed: int = 0
    imported: int = 0
    skipped: int = 0
    failed: int = 0
    message: str = ""

    def summary(self) -> str:
        if self.message:
            return f"{self.kind}: {self.message}"
        return (
            f"{self.kind}: total {self.total}, processed {self.processed}, "
            f"imported {self.imported}, skipped {self.skipped}, failed {self.failed}"
        )


class PmdImporter:
    def __init__(
        self,
        target: DuckDBStore,
        legacy: DuckDBStore,
        *,
        site_url: str = "",
        legacy_prefix: str = "pmd_",
        target_prefix: str = "wp_",
        profile: ListingProfile = ListingProfile.IMPORTER,
        dry_run: bool = False,
        limit: Optional[int] = None,
        batch_size: int = 500,
        default_date: Optional[str] = None,
        log: Optional[LogFn] = None,
    ) -> None:
        self.target = target
        self.legacy = legacy
        self.site_url = site_url
        self.legacy_prefix = legacy_prefix
        self.target_prefix = target_prefix
        self.tables = table_names(target_prefix)
        self.profile = ListingProfile(profile)
        self.dry_run = dry_run
        self.limit = limit
        self.batch_size = batch_size
        self.default_date = default_date or datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.log = log or _print_log
        self._detail_columns: Optional[List[str]] = None

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def legacy_table(self, kind: str) -> str:
        return f"{self.legacy_prefix}{LEGACY_TABLES[kind]}"

    def import_kind(self, kind: str) -> ImportResult:
        (kind,) = normalize_kinds([kind])
        handler = {
            "users": self.import_users,
            "categories": self.import_categories,
            "listings": self.import_listings,
            "reviews": self.import_reviews,
        }[kind]
        return handler()

    def run(self, kinds: Iterable[str]) -> List[ImportResult]:
        """Import every selected kind, users first, then categories, listings and reviews.

        An empty legacy table ends that kind only; the next kind still runs.
        """
        results: List[ImportResult] = []
        for kind in normalize_kinds(kinds):
            try:
                results.append(self.import_kind(kind))
            except EmptySourceTableError as e:
                self.log(str(e), level="WARNING")
                results.append(ImportResult(kind=kind, message=str(e)))
        return results

    def remove_legacy_table(self, kind: str) -> None:
        (kind,) = normalize_kinds([kind])
        table = self.legacy_table(kind)
        if self.dry_run:
            self.log(f"Dry-run: would drop legacy table {table}")
            return
        self.legacy.drop_table(table)
        self.log(f"Removed legacy table {table}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _rows(self, kind: str, result: ImportResult) -> Iterator[Dict[str, Any]]:
        table = self.legacy_table(kind)
        if not self.legacy.table_exists(table):
            raise EmptySourceTableError(
                f"There are no {kind} in your PhpMyDirectory installation (table {table} not found)."
            )
        result.total = self.legacy.count(table)
        if result.total == 0:
            raise EmptySourceTableError(f"There are no {kind} in your PhpMyDirectory installation.")
        self.log(f"Importing {result.total} {kind} from {table}")
        rows = self.legacy.iter_rows(table, batch_size=self.batch_size)
        if self.limit is not None:
            rows = islice(rows, self.limit)
        return rows

    def _validate(self, model, kind: str, row: Dict[str, Any], result: ImportResult):
        try:
            record = model.model_validate(row)
        except ValidationError as e:
            report_error("INVALID_RECORD", kind, row, e)
            result.failed += 1
            return None
        if record.id is None:
            report_error("MISSING_ID", kind, row)
            result.failed += 1
            return None
        return record

    def _skip(self, kind: str, row: Dict[str, Any], result: ImportResult, reason: str) -> None:
        report_ok("SKIPPED_DUPLICATE", kind, row, {"reason": reason})
        result.skipped += 1

    def _write(self, kind: str, row: Dict[str, Any], result: ImportResult, writes: List[tuple]) -> None:
        """Insert ``(table, row)`` pairs in one transaction, or only report them on a dry-run."""
        if self.dry_run:
            report_ok("DRY_RUN", kind, row)
            result.imported += 1
            return
        try:
            with self.target.transaction():
                for table, values in writes:
                    self.target.insert(table, values)
        except (duckdb.Error, ValueError) as e:
            report_error("INSERT_FAILED", kind, row, e)
            result.failed += 1
            return
        report_ok("IMPORTED", kind, row)
        result.imported += 1

    def _finish(self, result: ImportResult) -> ImportResult:
        self.log(f"Finished importing {result.summary()}")
        return result

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def _user_role(self, user_id: int) -> str:
        lookup = f"{self.legacy_prefix}users_groups_lookup"
        if not self.legacy.table_exists(lookup):
            return map_role(None)
        rows = self.legacy.select_all(
            f"SELECT group_id FROM {self.legacy.qualify(lookup)} WHERE user_id = ? LIMIT 1", [user_id]
        )
        return map_role(int(rows[0]["group_id"]) if rows and rows[0]["group_id"] is not None else None)

    def import_users(self) -> ImportResult:
        result = ImportResult(kind="users")
        users_table = self.tables["users"]

        for row in self._rows("users", result):
            result.processed += 1
            user = self._validate(LegacyUser, "users", row, result)
            if user is None:
                continue
            if not user.login:
                report_error("MISSING_LOGIN", "users", row)
                result.failed += 1
                continue

            if user.user_email and self.target.exists(users_table, "user_email", user.user_email):
                self._skip("users", row, result, "email")
                continue
            existing = self.target.select_all(
                f'SELECT user_login FROM {self.target.qualify(users_table)} WHERE "ID" = ?', [user.id]
            )
            if existing:
                if existing[0]["user_login"] == user.login:
                    self._skip("users", row, result, "id")
                else:
                    report_error("ID_CONFLICT", "users", row)
                    result.failed += 1
                continue

            mapped = map_user(user, default_date=self.default_date)
            role = self._user_role(user.id)
            writes = [(users_table, mapped.to_row())]
            for meta in map_user_meta(user, role=role, table_prefix=self.target_prefix):
                writes.append((self.tables["usermeta"], {"user_id": user.id, **meta}))
            self._write("users", row, result, writes)

        return self._finish(result)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def import_categories(self) -> ImportResult:
        result = ImportResult(kind="categories")

        for row in self._rows("categories", result):
            result.processed += 1
            category = self._validate(LegacyCategory, "categories", row, result)
            if category is None:
                continue
            if self.target.exists(self.tables["terms"], "term_id", category.id):
                self._skip("categories", row, result, "id")
                continue

            term, taxonomy = map_category(category)
            writes = [
                (self.tables["terms"], term.to_row()),
                (self.tables["term_taxonomy"], taxonomy.to_row()),
            ]
            for meta in map_category_meta(category):
                writes.append((self.tables["termmeta"], {"term_id": category.id, **meta}))
            self._write("categories", row, result, writes)

        return self._finish(result)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def _listing_categories(self, listing: LegacyListing) -> List[int]:
        lookup = f"{self.legacy_prefix}listings_categories"
        ids: List[int] = []
        if self.legacy.table_exists(lookup):
            rows = self.legacy.select_all(
                f"SELECT cat_id FROM {self.legacy.qualify(lookup)} WHERE list_id = ? ORDER BY cat_id",
                [listing.id],
            )
            ids = [int(r["cat_id"]) for r in rows if r["cat_id"]]
        if not ids and listing.primary_category_id:
            ids = [listing.primary_category_id]
        return list(dict.fromkeys(ids))

    def _place_detail_row(self, values: Dict[str, Any]) -> Dict[str, Any]:
        # Only write the columns this GeoDirectory install actually has.
        if self._detail_columns is None:
            self._detail_columns = self.target.columns(self.tables["place_detail"])
        return {k: v for k, v in values.items() if k in self._detail_columns}

    def import_listings(self) -> ImportResult:
        if not self.site_url:
            raise ConfigurationMissingError(
                "The site URL is not configured and could not be read from the target database."
            )
        result = ImportResult(kind="listings")

        for row in self._rows("listings", result):
            result.processed += 1
            listing = self._validate(LegacyListing, "listings", row, result)
            if listing is None:
                continue
            if self.target.exists(self.tables["posts"], "ID", listing.id):
                self._skip("listings", row, result, "id")
                continue

            category_ids = self._listing_categories(listing)
            post, detail = map_listing(
                listing,
                site_url=self.site_url,
                category_ids=category_ids,
                profile=self.profile,
                default_date=self.default_date,
            )
            writes = [
                (self.tables["posts"], post.to_row()),
                (self.tables["place_detail"], self._place_detail_row(detail.to_row())),
            ]
            for category_id in category_ids:
                writes.append(
                    (
                        self.tables["term_relationships"],
                        {"object_id": listing.id, "term_taxonomy_id": category_id},
                    )
                )
            self._write("listings", row, result, writes)

        return self._finish(result)

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def _review_author(self, user_id: Optional[int]) -> Optional[LegacyUser]:
        users = self.legacy_table("users")
        if not user_id or not self.legacy.table_exists(users):
            return None
        rows = self.legacy.select_all(f"SELECT * FROM {self.legacy.qualify(users)} WHERE id = ? LIMIT 1", [user_id])
        return LegacyUser.model_validate(rows[0]) if rows else None

    def import_reviews(self) -> ImportResult:
        """Import PMD reviews as comments on the imported listings."""
        result = ImportResult(kind="reviews")

        for row in self._rows("reviews", result):
            result.processed += 1
            review = self._validate(LegacyReview, "reviews", row, result)
            if review is None:
                continue
            if review.listing_id is None:
                report_error("INVALID_RECORD", "reviews", row)
                result.failed += 1
                continue
            if self.target.exists(self.tables["comments"], "comment_ID", review.id):
                self._skip("reviews", row, result, "id")
                continue

            comment = map_review(review, author=self._review_author(review.user_id), default_date=self.default_date)
            self._write("reviews", row, result, [(self.tables["comments"], comment.to_row())])

        return self._finish(result)
