import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import duckdb
import pytest

from conftest import SITE_URL, create_legacy_schema, insert_rows, legacy_listing_row
from geodir_converter.stores.duckdb_store import DuckDBStore
from geodir_converter.wizard import (
    DB_DETAILS_KEY,
    DB_DETAILS_TTL,
    ImportWizard,
    TransientCache,
    settings_from_form,
)
from geodir_converter.utils.errors import ConfigurationMissingError

FORM = {
    "database-host": "db.example.com",
    "database-name": "pmd",
    "database-user": "pmd_user",
    "database-password": "secret",
    "table-prefix": "pmd_",
}


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def legacy_file(tmp_path):
    path = str(tmp_path / "pmd.duckdb")
    with DuckDBStore.connect(path) as store:
        create_legacy_schema(store)
    return path


def _wizard(target, connect, clock=None):
    return ImportWizard(
        target,
        site_url=SITE_URL,
        connect=connect,
        cache=TransientCache(clock or FakeClock()),
        importer_options={"default_date": "2024-06-01 12:00:00"},
    )


def _file_connect(path, calls=None):
    def connect(settings):
        if calls is not None:
            calls.append(settings)
        return DuckDBStore.connect(path)

    return connect


def test_step_1_lists_connection_fields(target):
    response = _wizard(target, connect=None).handle(1)
    assert response.ok
    names = [f["name"] for f in response.data["fields"]]
    assert names == ["database-host", "database-name", "database-user", "database-password", "table-prefix"]
    prefix = [f for f in response.data["fields"] if f["name"] == "table-prefix"][0]
    assert prefix["default"] == "pmd_"


def test_settings_from_form_requires_host_database_and_user():
    with pytest.raises(ConfigurationMissingError) as exc:
        settings_from_form({"database-name": "pmd", "database-user": "  "})
    assert "Database Host" in str(exc.value)
    assert "Database Username" in str(exc.value)


def test_settings_from_form_defaults():
    settings = settings_from_form({"database-host": " localhost ", "database-name": "pmd", "database-user": "u"})
    assert settings.host == "localhost"
    assert settings.password == ""
    assert settings.prefix == "pmd_"


def test_step_2_missing_host_is_an_error(target):
    calls = []
    wizard = _wizard(target, connect=lambda s: calls.append(s))
    form = dict(FORM, **{"database-host": ""})

    response = wizard.handle(2, form)

    assert not response.ok
    assert "Database Host" in response.message
    assert calls == []
    assert wizard.cache.get(DB_DETAILS_KEY) is None


def test_step_2_connection_failure(target):
    def refuse(settings):
        raise duckdb.ConnectionException("Connection refused")

    wizard = _wizard(target, connect=refuse)
    response = wizard.step_2(FORM)

    assert response.status == "error"
    assert "Could not connect to PhpMyDirectory" in response.message
    assert wizard.cache.get(DB_DETAILS_KEY) is None


def test_step_2_caches_settings_and_resubmit_overwrites(target, legacy_file):
    wizard = _wizard(target, connect=_file_connect(legacy_file))

    assert wizard.step_2(FORM).ok
    assert wizard.cache.get(DB_DETAILS_KEY)["host"] == "db.example.com"

    assert wizard.step_2(dict(FORM, **{"database-host": "other.example.com"})).ok
    assert wizard.cache.get(DB_DETAILS_KEY)["host"] == "other.example.com"


def test_step_3_without_cached_settings(target):
    response = _wizard(target, connect=None).step_3(["listings"])
    assert not response.ok
    assert "settings are missing" in response.message


def test_cached_settings_expire_after_an_hour(target, legacy_file):
    clock = FakeClock()
    wizard = _wizard(target, connect=_file_connect(legacy_file), clock=clock)
    assert wizard.step_2(FORM).ok

    clock.now += DB_DETAILS_TTL - 1
    assert wizard.cache.get(DB_DETAILS_KEY) is not None
    clock.now += 1
    response = wizard.step_3(["categories"])

    assert not response.ok
    assert "settings are missing" in response.message


def test_step_3_rejects_empty_selection(target, legacy_file):
    wizard = _wizard(target, connect=_file_connect(legacy_file))
    wizard.step_2(FORM)
    response = wizard.handle(3, {"types": ""})
    assert not response.ok
    assert "Select at least one" in response.message


def test_step_3_rejects_unsupported_selection(target, legacy_file):
    wizard = _wizard(target, connect=_file_connect(legacy_file))
    wizard.step_2(FORM)
    response = wizard.step_3(["invoices"])
    assert not response.ok
    assert "Unsupported entity type" in response.message


def test_step_3_runs_the_import(target, legacy_file):
    with DuckDBStore.connect(legacy_file) as store:
        insert_rows(store, "pmd_categories", [{"id": 5, "title": "Cafes", "friendly_url": "cafes"}])
        insert_rows(store, "pmd_listings", [legacy_listing_row()])
    calls = []
    wizard = _wizard(target, connect=_file_connect(legacy_file, calls))
    wizard.step_2(FORM)

    response = wizard.handle(3, {"types": "listing,category"})

    assert response.ok, response.message
    assert response.message.startswith("Import finished.")
    assert [r.kind for r in response.data["results"]] == ["categories", "listings"]
    assert target.count("wp_terms") == 1
    assert target.count("wp_posts") == 1
    # Step 3 reconnects with the settings cached by step 2
    assert calls[-1].host == "db.example.com"


def test_step_3_empty_tables_still_succeed(target, legacy_file):
    wizard = _wizard(target, connect=_file_connect(legacy_file))
    wizard.step_2(FORM)
    response = wizard.step_3(["all"])
    assert response.ok
    assert "There are no users" in response.message


def test_unknown_step(target):
    response = _wizard(target, connect=None).handle(4)
    assert response.status == "error"
    assert response.step == 4


def test_transient_cache_delete():
    cache = TransientCache(FakeClock())
    cache.set("k", {"a": 1}, 10)
    assert cache.get("k") == {"a": 1}
    cache.delete("k")
    assert cache.get("k") is None
