"""Schema validation for canonical building records.

``validate()`` runs the full rule set and reports every violation at once,
so a content editor gets the complete correction list in one pass.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from buildings.errors import RecordValidationError, Violation
from buildings.schema import BuildingRecord

log = logging.getLogger("buildings.validate")

# pydantic error type -> rule name
_RULES = {
    "missing": "required",
    "extra_forbidden": "unknown_field",
    "greater_than": "range",
    "greater_than_equal": "range",
    "less_than": "range",
    "less_than_equal": "range",
    "literal_error": "enum",
    "enum": "enum",
    "string_pattern_mismatch": "pattern",
    "string_too_short": "non_empty",
}


def format_path(loc: Iterable[Any]) -> str:
    """Turn a pydantic ``loc`` tuple into ``floorPlans[2].sqFt`` form."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def _to_violation(error: Mapping[str, Any]) -> Violation:
    rule = _RULES.get(error["type"], "type")
    actual = None if rule == "required" else error.get("input")
    return Violation(path=format_path(error["loc"]), rule=rule, actual=actual)


def validate(record: Mapping[str, Any] | BuildingRecord) -> BuildingRecord:
    """Validate a canonical-shaped mapping and return the typed record.

    Raises:
        RecordValidationError: with every violated rule, in field order
    """
    if isinstance(record, BuildingRecord):
        return record
    try:
        return BuildingRecord.model_validate(record)
    except ValidationError as exc:
        record_id = record.get("id", "") if isinstance(record, Mapping) else ""
        violations = [_to_violation(e) for e in exc.errors()]
        log.debug("Record %r failed validation with %d violation(s)",
                  record_id, len(violations))
        raise RecordValidationError(violations, record_id=str(record_id or "")) from None


def validate_many(
    records: Iterable[Mapping[str, Any]],
) -> tuple[list[BuildingRecord], list[tuple[int, RecordValidationError]]]:
    """Validate a batch. Returns (valid records, [(index, error), ...])."""
    valid: list[BuildingRecord] = []
    failures: list[tuple[int, RecordValidationError]] = []
    for idx, raw in enumerate(records):
        try:
            valid.append(validate(raw))
        except RecordValidationError as exc:
            failures.append((idx, exc))
    if failures:
        log.warning("%d of %d record(s) failed validation",
                    len(failures), len(valid) + len(failures))
    return valid, failures
