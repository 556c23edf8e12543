"""
Password check for users imported from PhpMyDirectory.

Imported users keep their PMD password hash in ``user_pass`` and the PMD
hash algorithm and salt in ``usermeta`` (``pmd_password_hash`` /
``pmd_password_salt``).  :func:`check_legacy_login` lets the site accept
the old password once: on a match the caller stores a new WordPress hash
through ``set_password`` and the PMD meta is removed, so later logins use
WordPress' own verification.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from geodir_converter.mappers.record_mapper import LEGACY_PASSWORD_META, verify_legacy_password
from geodir_converter.stores.duckdb_store import DuckDBStore
from geodir_converter.stores.schema import table_names

SetPasswordFn = Callable[[int, str], None]


def legacy_password_meta(target: DuckDBStore, user_id: int, *, prefix: str = "wp_") -> Dict[str, str]:
    usermeta = table_names(prefix)["usermeta"]
    placeholders = ", ".join("?" for _ in LEGACY_PASSWORD_META)
    rows = target.select_all(
        f"SELECT meta_key, meta_value FROM {target.qualify(usermeta)} "
        f"WHERE user_id = ? AND meta_key IN ({placeholders})",
        [user_id, *LEGACY_PASSWORD_META],
    )
    return {r["meta_key"]: r["meta_value"] for r in rows}


def check_legacy_login(
    target: DuckDBStore,
    user_id: int,
    password: str,
    *,
    prefix: str = "wp_",
    set_password: Optional[SetPasswordFn] = None,
) -> bool:
    """Return ``True`` when ``password`` matches the user's PMD hash.

    Users without PMD meta never match.  When ``set_password`` is given and
    the password matches, it is called with ``(user_id, password)`` and the
    PMD meta rows are deleted in the same transaction.
    """
    hash_key, salt_key = LEGACY_PASSWORD_META
    meta = legacy_password_meta(target, user_id, prefix=prefix)
    if not meta.get(hash_key):
        return False

    tables = table_names(prefix)
    rows = target.select_all(f'SELECT user_pass FROM {target.qualify(tables["users"])} WHERE "ID" = ?', [user_id])
    if not rows:
        return False
    if not verify_legacy_password(password, rows[0]["user_pass"] or "", meta[hash_key], meta.get(salt_key)):
        return False

    if set_password is not None:
        placeholders = ", ".join("?" for _ in LEGACY_PASSWORD_META)
        with target.transaction():
            set_password(user_id, password)
            target.execute(
                f"DELETE FROM {target.qualify(tables['usermeta'])} WHERE user_id = ? AND meta_key IN ({placeholders})",
                [user_id, *LEGACY_PASSWORD_META],
            )
    return True
