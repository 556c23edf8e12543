"""
Step-based import flow (the admin wizard without its HTML).

The wizard walks the operator through three steps, always forward:

1. ``step_1`` lists the PhpMyDirectory connection settings to collect.
2. ``step_2`` checks the submitted settings by connecting to the PMD
   database and keeps them in a short-lived cache for one hour.
   Submitting again simply overwrites the cached settings.
3. ``step_3`` reads the cached settings, validates the selected entity
   types and runs the import.

Every step answers through a :class:`ResponseChannel`, which turns the
outcome into a terminal :class:`WizardResponse`: either ``success`` with a
message, or ``error`` with the message shown to the operator.  Nothing is
retried.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import duckdb
from pydantic import BaseModel, ValidationError, field_validator

from geodir_converter.importers.pmd_importer import ImportResult, PmdImporter, normalize_kinds
from geodir_converter.stores.duckdb_store import DuckDBStore
from geodir_converter.utils.errors import ConfigurationMissingError, ConverterError

DB_DETAILS_KEY = "geodir_converter_pmd_db_details"
DB_DETAILS_TTL = 60 * 60


class TransientCache:
    """In-process key/value store whose entries expire after ``ttl`` seconds."""

    def __init__(self, time_fn: Callable[[], float] = time.time) -> None:
        self._time = time_fn
        self._items: Dict[str, Tuple[Any, float]] = {}

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._items[key] = (value, self._time() + ttl)

    def get(self, key: str) -> Optional[Any]:
        item = self._items.get(key)
        if item is None:
            return None
        value, expires = item
        if self._time() >= expires:
            del self._items[key]
            return None
        return value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)


@dataclass
class WizardResponse:
    status: str
    message: str
    step: int = 0
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "success"


class ResponseChannel:
    """Builds the terminal response of a wizard request."""

    def success(self, message: str, *, step: int = 0, **data: Any) -> WizardResponse:
        return WizardResponse(status="success", message=message, step=step, data=data)

    def error(self, message: str, *, step: int = 0, **data: Any) -> WizardResponse:
        return WizardResponse(status="error", message=message, step=step, data=data)


class ConnectionSettings(BaseModel):
    host: str
    database: str
    user: str
    password: str = ""
    port: int = 3306
    prefix: str = "pmd_"

    @field_validator("host", "database", "user", "prefix", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


# Form field name -> ConnectionSettings field, with the label shown to the operator
CONNECTION_FIELDS: List[Tuple[str, str, str]] = [
    ("database-host", "host", "Database Host"),
    ("database-name", "database", "Database Name"),
    ("database-user", "user", "Database Username"),
    ("database-password", "password", "Database Password"),
    ("table-prefix", "prefix", "Table Prefix"),
]
REQUIRED_FIELDS = ("host", "database", "user")


def settings_from_form(form: Dict[str, Any]) -> ConnectionSettings:
    """Read the step-1 form into :class:`ConnectionSettings`.

    :raises ConfigurationMissingError: when host, database name or user is blank.
    """
    values: Dict[str, Any] = {}
    for form_name, attr, _label in CONNECTION_FIELDS:
        value = form.get(form_name)
        if isinstance(value, str):
            value = value.strip()
        if value:
            values[attr] = value
    missing = [label for form_name, attr, label in CONNECTION_FIELDS if attr in REQUIRED_FIELDS and attr not in values]
    if missing:
        raise ConfigurationMissingError(f"Missing PhpMyDirectory database settings: {', '.join(missing)}.")
    return ConnectionSettings(**values)


def connect_legacy(settings: ConnectionSettings) -> DuckDBStore:
    return DuckDBStore.attach_mysql(
        host=settings.host,
        database=settings.database,
        user=settings.user,
        password=settings.password,
        port=settings.port,
    )


class ImportWizard:
    def __init__(
        self,
        target: DuckDBStore,
        *,
        site_url: str = "",
        target_prefix: str = "wp_",
        connect: Callable[[ConnectionSettings], DuckDBStore] = connect_legacy,
        cache: Optional[TransientCache] = None,
        channel: Optional[ResponseChannel] = None,
        importer_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.target = target
        self.site_url = site_url
        self.target_prefix = target_prefix
        self.connect = connect
        self.cache = cache or TransientCache()
        self.channel = channel or ResponseChannel()
        self.importer_options = importer_options or {}

    def handle(self, step: int, form: Optional[Dict[str, Any]] = None) -> WizardResponse:
        form = form or {}
        if step == 1:
            return self.step_1()
        if step == 2:
            return self.step_2(form)
        if step == 3:
            selection = form.get("types") or form.get("type") or []
            if isinstance(selection, str):
                selection = [s for s in selection.split(",")]
            return self.step_3(selection)
        return self.channel.error(f"Unknown wizard step: {step}", step=step)

    def step_1(self) -> WizardResponse:
        fields = [
            {"name": form_name, "label": label, "default": "pmd_" if attr == "prefix" else ""}
            for form_name, attr, label in CONNECTION_FIELDS
        ]
        return self.channel.success(
            "Enter the database details of your PhpMyDirectory installation.", step=1, fields=fields
        )

    def step_2(self, form: Dict[str, Any]) -> WizardResponse:
        try:
            settings = settings_from_form(form)
        except (ConverterError, ValidationError) as e:
            return self.channel.error(str(e), step=2)

        try:
            store = self.connect(settings)
        except (duckdb.Error, ConverterError) as e:
            return self.channel.error(f"Could not connect to PhpMyDirectory: {e}", step=2)
        store.close()

        self.cache.set(DB_DETAILS_KEY, settings.model_dump(), DB_DETAILS_TTL)
        return self.channel.success(
            "Successfully connected to PhpMyDirectory. "
            "Select the data to import and start the import.",
            step=2,
        )

    def step_3(self, selection: Iterable[str]) -> WizardResponse:
        cached = self.cache.get(DB_DETAILS_KEY)
        if not cached or not isinstance(cached, dict):
            return self.channel.error(
                "Your PhpMyDirectory database settings are missing. Please start again.", step=3
            )
        try:
            kinds = normalize_kinds(selection)
        except ConverterError as e:
            return self.channel.error(str(e), step=3)

        settings = ConnectionSettings(**cached)
        try:
            legacy = self.connect(settings)
        except (duckdb.Error, ConverterError) as e:
            return self.channel.error(f"Could not connect to PhpMyDirectory: {e}", step=3)

        try:
            importer = PmdImporter(
                self.target,
                legacy,
                site_url=self.site_url,
                legacy_prefix=settings.prefix,
                target_prefix=self.target_prefix,
                **self.importer_options,
            )
            results: List[ImportResult] = importer.run(kinds)
        except ConverterError as e:
            return self.channel.error(str(e), step=3)
        finally:
            legacy.close()

        summary = "; ".join(r.summary() for r in results)
        return self.channel.success(f"Import finished. {summary}", step=3, results=results)
