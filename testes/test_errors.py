import json
import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from geodir_converter.utils.errors import (
    ConfigurationMissingError,
    ConverterError,
    EmptySourceTableError,
    UnsupportedEntitySelectionError,
    report_error,
    report_ok,
)


def _lines(path):
    with open(path, "r", encoding="utf-8") as f:
        return [json.loads(line) for line in f]


def test_error_hierarchy():
    for cls in (ConfigurationMissingError, UnsupportedEntitySelectionError, EmptySourceTableError):
        assert issubclass(cls, ConverterError)


def test_report_error_writes_jsonl(capsys):
    report_error("INSERT_FAILED", "listings", {"id": 10, "title": "Joe's Diner"}, ValueError("boom"))
    entry = _lines(os.path.join("reports", "conversion", "errors.jsonl"))[0]
    assert entry == {
        "code": "INSERT_FAILED",
        "message": "Failed to write record to the target database",
        "kind": "listings",
        "legacy_id": 10,
        "label": "Joe's Diner",
        "error": "boom",
    }
    assert "[ERROR]" in capsys.readouterr().out


def test_report_ok_extra_and_unknown_code():
    report_ok("SKIPPED_DUPLICATE", "users", {"id": 2, "login": "ada"}, {"reason": "email"})
    report_ok("CUSTOM", "categories", {"id": 5})
    entries = _lines(os.path.join("reports", "conversion", "success.jsonl"))
    assert entries[0]["label"] == "ada"
    assert entries[0]["reason"] == "email"
    assert entries[1]["message"] == "CUSTOM"
    assert entries[1]["label"] is None
