"""Canonical building records: schema, legacy migration, validation, catalog."""

from .catalog import BuildingCatalog
from .errors import DuplicateBuildingError, MigrationError, RecordValidationError, Violation
from .migrate import adapt
from .schema import BuildingRecord
from .validate import validate

__all__ = [
    "BuildingCatalog",
    "BuildingRecord",
    "DuplicateBuildingError",
    "MigrationError",
    "RecordValidationError",
    "Violation",
    "adapt",
    "validate",
]
