"""
Utility helpers used by the converter.

This subpackage exposes the error taxonomy and the structured run reports.
"""

from .errors import (
    ERRORS,
    ConfigurationMissingError,
    ConverterError,
    EmptySourceTableError,
    UnsupportedEntitySelectionError,
    report_error,
    report_ok,
)

__all__ = [
    "ERRORS",
    "ConfigurationMissingError",
    "ConverterError",
    "EmptySourceTableError",
    "UnsupportedEntitySelectionError",
    "report_error",
    "report_ok",
]
