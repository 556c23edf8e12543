import hashlib
import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest

from conftest import insert_rows
from geodir_converter.legacy_login import check_legacy_login, legacy_password_meta

PASSWORD = "hunter2"
SALT = "xyz"


@pytest.fixture
def imported_user(target):
    target.insert(
        "wp_users",
        {
            "ID": 7,
            "user_login": "ada",
            "user_pass": hashlib.md5((PASSWORD + SALT).encode("utf-8")).hexdigest(),
            "user_email": "ada@example.com",
            "user_registered": "2018-03-04 05:06:07",
        },
    )
    insert_rows(
        target,
        "wp_usermeta",
        [
            {"user_id": 7, "meta_key": "pmd_password_hash", "meta_value": "md5"},
            {"user_id": 7, "meta_key": "pmd_password_salt", "meta_value": SALT},
            {"user_id": 7, "meta_key": "first_name", "meta_value": "Ada"},
        ],
    )
    return 7


def test_legacy_password_meta(target, imported_user):
    assert legacy_password_meta(target, imported_user) == {
        "pmd_password_hash": "md5",
        "pmd_password_salt": SALT,
    }


def test_matching_password_is_rehashed_once(target, imported_user):
    calls = []

    def set_password(user_id, password):
        calls.append((user_id, password))
        target.execute('UPDATE wp_users SET user_pass = ? WHERE "ID" = ?', ["$P$new", user_id])

    assert check_legacy_login(target, imported_user, PASSWORD, set_password=set_password)

    assert calls == [(7, PASSWORD)]
    assert legacy_password_meta(target, imported_user) == {}
    assert target.select_all('SELECT user_pass FROM wp_users') == [{"user_pass": "$P$new"}]
    # Other meta is left alone
    assert target.count("wp_usermeta") == 1
    # The PMD hash no longer applies
    assert not check_legacy_login(target, imported_user, PASSWORD)


def test_match_without_set_password_keeps_meta(target, imported_user):
    assert check_legacy_login(target, imported_user, PASSWORD)
    assert legacy_password_meta(target, imported_user)["pmd_password_hash"] == "md5"


def test_wrong_password(target, imported_user):
    calls = []
    assert not check_legacy_login(target, imported_user, "hunter3", set_password=lambda *a: calls.append(a))
    assert calls == []
    assert target.count("wp_usermeta") == 3


def test_failed_rehash_keeps_meta(target, imported_user):
    def set_password(user_id, password):
        raise RuntimeError("hasher unavailable")

    with pytest.raises(RuntimeError):
        check_legacy_login(target, imported_user, PASSWORD, set_password=set_password)
    assert legacy_password_meta(target, imported_user)["pmd_password_salt"] == SALT


def test_user_without_pmd_meta_never_matches(target):
    target.insert(
        "wp_users",
        {
            "ID": 8,
            "user_login": "native",
            "user_pass": hashlib.md5(PASSWORD.encode("utf-8")).hexdigest(),
            "user_email": "native@example.com",
            "user_registered": "2020-01-01 00:00:00",
        },
    )
    assert not check_legacy_login(target, 8, PASSWORD)
    assert not check_legacy_login(target, 99, PASSWORD)
