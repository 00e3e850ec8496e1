"""Exceptions raised while ingesting building records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class MigrationError(Exception):
    """A legacy record is missing fields that have no default.

    Attributes:
        missing_required: canonical paths that could not be derived
        record_id: best-effort identifier of the offending record
    """

    def __init__(self, missing_required: list[str], record_id: str = ""):
        self.missing_required = list(missing_required)
        self.record_id = record_id
        label = f" for {record_id!r}" if record_id else ""
        super().__init__(
            f"Cannot migrate legacy record{label}: missing required "
            f"field(s) {', '.join(self.missing_required)}"
        )


@dataclass(frozen=True)
class Violation:
    """One failed validation rule."""

    path: str   # canonical path, e.g. "floorPlans[2].sqFt"
    rule: str   # required | type | range | enum | pattern | non_empty | unknown_field
    actual: Any = None

    def __str__(self) -> str:
        return f"{self.path}: {self.rule} (got {self.actual!r})"


class RecordValidationError(ValueError):
    """A record broke one or more schema rules. All violations are listed."""

    def __init__(self, violations: list[Violation], record_id: str = ""):
        self.violations = list(violations)
        self.record_id = record_id
        label = f" {record_id!r}" if record_id else ""
        lines = [f"Building record{label} has {len(self.violations)} violation(s):"]
        lines.extend(f"  - {v}" for v in self.violations)
        super().__init__("\n".join(lines))

    @property
    def paths(self) -> list[str]:
        return [v.path for v in self.violations]


class DuplicateBuildingError(KeyError):
    """A second record was added under an id already held by the catalog."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Duplicate building id: {record_id!r}")
