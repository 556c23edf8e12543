"""
Error taxonomy and structured run reports for the conversion.

Terminal conditions are raised as subclasses of :class:`ConverterError`
and surfaced to the operator in plain text by the command line or the
wizard.  Per-record outcomes are not exceptions: they are appended to a
JSON Lines file under ``reports/conversion`` so that a run can be
reviewed after the fact.

Two public reporting functions are provided:

``report_error``
    Record a record that could not be imported.  An optional exception can
    be supplied and will be serialized to the log.

``report_ok``
    Record a record that was imported or deliberately skipped.  Additional
    key/value information can be attached via the ``extra`` parameter.

The ``ERRORS`` dictionary maps event codes to human readable messages.
Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional


class ConverterError(Exception):
    """Base class for conditions that end the current request or command."""


class ConfigurationMissingError(ConverterError):
    """A required connection or selection parameter is absent."""


class UnsupportedEntitySelectionError(ConverterError):
    """The requested entity type has no configured source table."""


class EmptySourceTableError(ConverterError):
    """The legacy table for an entity type holds no rows."""


# Mapping of event codes used throughout the conversion to descriptive messages.
ERRORS: Dict[str, str] = {
    "MISSING_ID": "Legacy record has no id",
    "MISSING_LOGIN": "Legacy user has no login",
    "INVALID_RECORD": "Legacy record failed validation",
    "INSERT_FAILED": "Failed to write record to the target database",
    "ID_CONFLICT": "Target id already taken by a different record",
    "SKIPPED_DUPLICATE": "Record already present in the target database",
    "IMPORTED": "Record imported successfully",
    "DRY_RUN": "Record mapped (dry-run, nothing written)",
}

_REPORT_DIR = os.path.join("reports", "conversion")
_ERROR_LOG = os.path.join(_REPORT_DIR, "errors.jsonl")
_OK_LOG = os.path.join(_REPORT_DIR, "success.jsonl")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(_REPORT_DIR, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, default=str)
        f.write("\n")


def _entry(code: str, kind: str, record: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "code": code,
        "message": ERRORS.get(code, code),
        "kind": kind,
        "legacy_id": record.get("id"),
        "label": record.get("title") or record.get("login") or record.get("user_email"),
    }


def report_error(code: str, kind: str, record: Dict[str, Any], exc: Optional[Exception] = None) -> None:
    """Log an error event for a legacy ``record``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    kind:
        Entity type being imported (``users``, ``categories``, ``listings``).
    record:
        The raw legacy row.  Only ``id`` and a label column are referenced.
    exc:
        Optional exception instance that triggered the error.
    """
    entry = _entry(code, kind, record)
    if exc is not None:
        entry["error"] = str(exc)
    print(f"[ERROR] {entry['message']} - {kind} #{entry['legacy_id']}")
    _write_jsonl(_ERROR_LOG, entry)


def report_ok(code: str, kind: str, record: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Log a successful (or skipped) event for a legacy ``record``."""
    entry = _entry(code, kind, record)
    if extra:
        entry.update(extra)
    print(f"[OK] {entry['message']} - {kind} #{entry['legacy_id']}")
    _write_jsonl(_OK_LOG, entry)
