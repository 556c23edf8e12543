import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import duckdb
import pytest

from geodir_converter.stores.duckdb_store import DuckDBStore, mysql_secret_sql, quote_identifier, quote_literal
from geodir_converter.stores.schema import create_target_schema, read_site_url, table_names


@pytest.fixture
def store():
    s = DuckDBStore.connect()
    s.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name VARCHAR)")
    yield s
    s.close()


def test_quote_identifier():
    assert quote_identifier("ID") == '"ID"'
    assert quote_identifier('we"ird') == '"we""ird"'


def test_insert_and_select(store):
    assert store.insert("items", {"id": 1, "name": "one"}, id_column="id") == 1
    assert store.select_all("SELECT * FROM items") == [{"id": 1, "name": "one"}]
    assert store.exists("items", "name", "one")
    assert not store.exists("items", "name", "two")
    assert store.count("items") == 1


def test_insert_rejects_empty_row(store):
    with pytest.raises(ValueError):
        store.insert("items", {})


def test_insert_duplicate_key_raises(store):
    store.insert("items", {"id": 1, "name": "one"})
    with pytest.raises(duckdb.Error):
        store.insert("items", {"id": 1, "name": "again"})


def test_iter_rows_pages_in_id_order(store):
    for i in (5, 3, 1, 4, 2):
        store.insert("items", {"id": i, "name": f"item {i}"})
    assert [r["id"] for r in store.iter_rows("items", batch_size=2)] == [1, 2, 3, 4, 5]
    assert list(store.iter_rows("items", batch_size=10))[0] == {"id": 1, "name": "item 1"}


def test_introspection(store):
    assert store.table_exists("items")
    assert not store.table_exists("missing")
    assert store.columns("items") == ["id", "name"]
    store.drop_table("items")
    store.drop_table("items")
    assert not store.table_exists("items")


def test_connect_creates_parent_directory(tmp_path):
    path = tmp_path / "data" / "wordpress.duckdb"
    with DuckDBStore.connect(str(path)) as s:
        s.execute("CREATE TABLE t (id INTEGER)")
    assert path.exists()


def test_target_schema_and_site_url():
    with DuckDBStore.connect() as s:
        create_target_schema(s, site_url="https://example.com")
        for table in table_names("wp_").values():
            assert s.table_exists(table)
        assert read_site_url(s) == "https://example.com"
        # Running it again keeps the existing tables and option
        create_target_schema(s, site_url="https://other.example.com")
        assert read_site_url(s) == "https://example.com"


def test_read_site_url_without_options_table():
    with DuckDBStore.connect() as s:
        assert read_site_url(s, prefix="site_") == ""


def test_quote_literal():
    assert quote_literal("plain") == "'plain'"
    assert quote_literal("it's") == "'it''s'"


def test_mysql_secret_quotes_every_value():
    sql = mysql_secret_sql(
        "legacy_secret", host="db.example.com", database="pmd", user="o'neil", password="a'b c=d"
    )
    assert sql == (
        'CREATE OR REPLACE SECRET "legacy_secret" (TYPE mysql, HOST \'db.example.com\', PORT 3306, '
        "DATABASE 'pmd', USER 'o''neil', PASSWORD 'a''b c=d')"
    )


def test_mysql_secret_port_must_be_a_number():
    assert "PORT 3307" in mysql_secret_sql("s", host="h", database="d", user="u", port="3307")
    with pytest.raises(ValueError):
        mysql_secret_sql("s", host="h", database="d", user="u", port="3306; DROP")


def test_transaction_rolls_back_on_error(store):
    with pytest.raises(duckdb.Error):
        with store.transaction():
            store.insert("items", {"id": 1, "name": "one"})
            store.insert("items", {"id": 1, "name": "again"})
    assert store.count("items") == 0


def test_transaction_commits(store):
    with store.transaction():
        store.insert("items", {"id": 1, "name": "one"})
        store.insert("items", {"id": 2, "name": "two"})
    assert store.count("items") == 2
    # The connection is usable again after a rollback
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.insert("items", {"id": 3, "name": "three"})
            raise RuntimeError("stop")
    assert store.count("items") == 2
