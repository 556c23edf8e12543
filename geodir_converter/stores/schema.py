"""
WordPress / GeoDirectory tables for a local DuckDB target database.

A real conversion writes into the site's own database, where these tables
already exist.  :func:`create_target_schema` creates DuckDB equivalents so
a conversion can be rehearsed locally (``geodir-convert init-target``) and
so the importer can be exercised against an in-memory store.
"""

from __future__ import annotations

from typing import List

from geodir_converter.stores.duckdb_store import DuckDBStore

PLACE_DETAIL_TABLE = "geodir_gd_place_detail"


def table_names(prefix: str = "wp_") -> dict:
    """Return the prefixed name of every table the importer writes to."""
    return {
        "posts": f"{prefix}posts",
        "terms": f"{prefix}terms",
        "term_taxonomy": f"{prefix}term_taxonomy",
        "term_relationships": f"{prefix}term_relationships",
        "termmeta": f"{prefix}termmeta",
        "comments": f"{prefix}comments",
        "users": f"{prefix}users",
        "usermeta": f"{prefix}usermeta",
        "options": f"{prefix}options",
        "place_detail": f"{prefix}{PLACE_DETAIL_TABLE}",
    }


def _statements(prefix: str) -> List[str]:
    t = table_names(prefix)
    return [
        f"""CREATE TABLE IF NOT EXISTS {t['posts']} (
            "ID" BIGINT PRIMARY KEY,
            post_author BIGINT DEFAULT 0,
            post_date TIMESTAMP,
            post_date_gmt TIMESTAMP,
            post_content VARCHAR DEFAULT '',
            post_title VARCHAR DEFAULT '',
            post_excerpt VARCHAR DEFAULT '',
            post_status VARCHAR DEFAULT 'publish',
            comment_status VARCHAR DEFAULT 'open',
            ping_status VARCHAR DEFAULT 'open',
            post_name VARCHAR DEFAULT '',
            post_modified TIMESTAMP,
            post_modified_gmt TIMESTAMP,
            post_parent BIGINT DEFAULT 0,
            guid VARCHAR DEFAULT '',
            menu_order INTEGER DEFAULT 0,
            post_type VARCHAR DEFAULT 'post',
            comment_count BIGINT DEFAULT 0
        )""",
        f"""CREATE TABLE IF NOT EXISTS {t['terms']} (
            term_id BIGINT PRIMARY KEY,
            name VARCHAR DEFAULT '',
            slug VARCHAR DEFAULT '',
            term_group BIGINT DEFAULT 0
        )""",
        f"""CREATE TABLE IF NOT EXISTS {t['term_taxonomy']} (
            term_taxonomy_id BIGINT PRIMARY KEY,
            term_id BIGINT DEFAULT 0,
            taxonomy VARCHAR DEFAULT '',
            description VARCHAR DEFAULT '',
            parent BIGINT DEFAULT 0,
            "count" BIGINT DEFAULT 0
        )""",
        f"""CREATE TABLE IF NOT EXISTS {t['term_relationships']} (
            object_id BIGINT,
            term_taxonomy_id BIGINT,
            term_order INTEGER DEFAULT 0,
            PRIMARY KEY (object_id, term_taxonomy_id)
        )""",
        f"CREATE SEQUENCE IF NOT EXISTS {t['termmeta']}_seq",
        f"""CREATE TABLE IF NOT EXISTS {t['termmeta']} (
            meta_id BIGINT DEFAULT nextval('{t['termmeta']}_seq') PRIMARY KEY,
            term_id BIGINT DEFAULT 0,
            meta_key VARCHAR,
            meta_value VARCHAR
        )""",
        f"""CREATE TABLE IF NOT EXISTS {t['comments']} (
            comment_ID BIGINT PRIMARY KEY,
            comment_post_ID BIGINT DEFAULT 0,
            comment_author VARCHAR DEFAULT '',
            comment_author_email VARCHAR DEFAULT '',
            comment_date TIMESTAMP,
            comment_date_gmt TIMESTAMP,
            comment_content VARCHAR DEFAULT '',
            comment_approved VARCHAR DEFAULT '1',
            comment_agent VARCHAR DEFAULT '',
            comment_type VARCHAR DEFAULT 'comment',
            comment_parent BIGINT DEFAULT 0,
            user_id BIGINT DEFAULT 0
        )""",
        f"""CREATE TABLE IF NOT EXISTS {t['users']} (
            "ID" BIGINT PRIMARY KEY,
            user_login VARCHAR DEFAULT '',
            user_pass VARCHAR DEFAULT '',
            user_nicename VARCHAR DEFAULT '',
            user_email VARCHAR DEFAULT '',
            user_url VARCHAR DEFAULT '',
            user_registered TIMESTAMP,
            user_activation_key VARCHAR DEFAULT '',
            user_status INTEGER DEFAULT 0,
            display_name VARCHAR DEFAULT ''
        )""",
        f"CREATE SEQUENCE IF NOT EXISTS {t['usermeta']}_seq",
        f"""CREATE TABLE IF NOT EXISTS {t['usermeta']} (
            umeta_id BIGINT DEFAULT nextval('{t['usermeta']}_seq') PRIMARY KEY,
            user_id BIGINT DEFAULT 0,
            meta_key VARCHAR,
            meta_value VARCHAR
        )""",
        f"CREATE SEQUENCE IF NOT EXISTS {t['options']}_seq",
        f"""CREATE TABLE IF NOT EXISTS {t['options']} (
            option_id BIGINT DEFAULT nextval('{t['options']}_seq') PRIMARY KEY,
            option_name VARCHAR UNIQUE,
            option_value VARCHAR DEFAULT '',
            autoload VARCHAR DEFAULT 'yes'
        )""",
        f"""CREATE TABLE IF NOT EXISTS {t['place_detail']} (
            post_id BIGINT PRIMARY KEY,
            post_title VARCHAR,
            post_status VARCHAR,
            post_tags VARCHAR,
            post_category VARCHAR,
            default_category BIGINT,
            featured_image VARCHAR,
            submit_ip VARCHAR,
            overall_rating DOUBLE DEFAULT 0,
            rating_count DOUBLE DEFAULT 0,
            street VARCHAR,
            city VARCHAR,
            region VARCHAR,
            country VARCHAR,
            zip VARCHAR,
            latitude VARCHAR,
            longitude VARCHAR,
            mapview VARCHAR,
            mapzoom VARCHAR,
            phone VARCHAR,
            email VARCHAR,
            website VARCHAR,
            twitter VARCHAR,
            facebook VARCHAR,
            video VARCHAR,
            special_offers VARCHAR,
            business_hours VARCHAR,
            timing VARCHAR,
            price VARCHAR,
            featured SMALLINT DEFAULT 0,
            is_featured SMALLINT DEFAULT 0,
            claimed SMALLINT DEFAULT 0,
            expire_date VARCHAR,
            post_dummy SMALLINT DEFAULT 0
        )""",
    ]


def create_target_schema(store: DuckDBStore, *, prefix: str = "wp_", site_url: str = "") -> None:
    """Create the target tables if missing and record ``siteurl`` when given."""
    for statement in _statements(prefix):
        store.execute(statement)
    if site_url:
        options = table_names(prefix)["options"]
        if not store.exists(options, "option_name", "siteurl"):
            store.insert(options, {"option_name": "siteurl", "option_value": site_url})


def read_site_url(store: DuckDBStore, *, prefix: str = "wp_") -> str:
    """Return the ``siteurl`` option of the target site, or ``""``."""
    options = table_names(prefix)["options"]
    if not store.table_exists(options):
        return ""
    rows = store.select_all(
        f"SELECT option_value FROM {store.qualify(options)} WHERE option_name = ?", ["siteurl"]
    )
    return (rows[0]["option_value"] or "") if rows else ""
