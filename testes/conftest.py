import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from geodir_converter.stores.duckdb_store import DuckDBStore
from geodir_converter.stores.schema import create_target_schema

SITE_URL = "https://example.com"

LEGACY_DDL = [
    """CREATE TABLE pmd_users (
        id INTEGER, login VARCHAR, "pass" VARCHAR, user_email VARCHAR, created TIMESTAMP,
        user_first_name VARCHAR, user_last_name VARCHAR,
        password_hash VARCHAR, password_salt VARCHAR
    )""",
    "CREATE TABLE pmd_users_groups_lookup (user_id INTEGER, group_id INTEGER)",
    """CREATE TABLE pmd_categories (
        id INTEGER, title VARCHAR, friendly_url VARCHAR, parent_id INTEGER,
        count_total INTEGER, description VARCHAR
    )""",
    """CREATE TABLE pmd_listings (
        id INTEGER, user_id INTEGER, title VARCHAR, friendly_url VARCHAR,
        description VARCHAR, "description_Short" VARCHAR, "date" TIMESTAMP, date_update TIMESTAMP,
        primary_category_id INTEGER, ip VARCHAR, rating DOUBLE, votes INTEGER,
        listing_address1 VARCHAR, listing_address2 VARCHAR,
        location_text_1 VARCHAR, location_text_2 VARCHAR, listing_zip VARCHAR,
        latitude VARCHAR, longitude VARCHAR, phone VARCHAR,
        twitter_id VARCHAR, facebook_page_id VARCHAR,
        claimed INTEGER, featured INTEGER, pagerank_expiration VARCHAR,
        status VARCHAR, www VARCHAR, mail VARCHAR, hours VARCHAR
    )""",
    "CREATE TABLE pmd_listings_categories (list_id INTEGER, cat_id INTEGER)",
    """CREATE TABLE pmd_reviews (
        id INTEGER, status VARCHAR, listing_id INTEGER, user_id INTEGER,
        "date" TIMESTAMP, review VARCHAR
    )""",
]


def create_legacy_schema(store):
    for statement in LEGACY_DDL:
        store.execute(statement)


def legacy_listing_row(**overrides):
    row = {
        "id": 10,
        "user_id": 3,
        "title": "Joe's Diner",
        "friendly_url": "joes-diner",
        "description": "<p>Burgers and shakes</p>",
        "description_Short": "Great place",
        "date": "2019-05-02 10:11:12",
        "date_update": "2020-01-01 08:00:00",
        "primary_category_id": 5,
        "ip": "10.0.0.1",
        "rating": 4.5,
        "votes": 12,
        "listing_address1": "1 Main St",
        "listing_address2": "Suite 2",
        "location_text_1": "Springfield",
        "location_text_2": "Illinois",
        "listing_zip": "62701",
        "latitude": "39.78",
        "longitude": "-89.65",
        "phone": "555-0100",
        "twitter_id": "joesdiner",
        "facebook_page_id": "joesdinerpage",
        "claimed": 1,
        "featured": 1,
        "pagerank_expiration": "2021-01-01",
        "status": "active",
        "www": "https://joes.example",
        "mail": "joe@example.com",
        "hours": "Mo-Fr 08:00-20:00",
    }
    row.update(overrides)
    return row


def insert_rows(store, table, rows):
    for row in rows:
        store.insert(table, row)


@pytest.fixture(autouse=True)
def _reports_in_tmp(tmp_path, monkeypatch):
    # Run reports and logs are written relative to the working directory.
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def target():
    store = DuckDBStore.connect()
    create_target_schema(store, site_url=SITE_URL)
    yield store
    store.close()


@pytest.fixture
def legacy():
    store = DuckDBStore.connect()
    create_legacy_schema(store)
    yield store
    store.close()
