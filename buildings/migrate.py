"""Legacy record migration: maps heterogeneous input records onto the canonical schema.

The mapping table is static JSON (see ``data/column_mappings/``). Each entry
maps a canonical dotted path to a field spec::

    "pricing.studioRange": {
        "from": ["studio_price", "studio_rent"],   # candidate legacy keys, first present wins
        "transform": "currency_range",             # named transform (TRANSFORMS)
        "default": null,                           # used when nothing can be derived
        "fallback": "name",                        # an already-resolved canonical path
        "items": {"required": [...], "fields": {...}}  # per-element sub-mapping for lists of objects
    }

Fields are resolved in table order, so a ``fallback`` may only refer to a
path listed above it. Top-level ``required`` and per-item ``required``
paths are checked together, and ``all_or_none`` names optional objects
that are dropped unless every listed member resolved.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

from buildings.audit import AuditTrail
from buildings.errors import MigrationError

log = logging.getLogger("buildings.migrate")

DEFAULT_MAPPING = Path(__file__).parent / "data" / "column_mappings" / "legacy_cms.json"

_NUMBER = re.compile(r"\d[\d,]*(?:\.\d+)?")
_BLANK = ("", "nan", "none", "null", "n/a")

SQ_FT_PER_SQ_M = 10.7639

UNIT_TYPE_ALIASES = {
    "studio": ["studio", "efficiency", "0br", "0 br", "0", "0 bed", "0bed", "s"],
    "1bed": ["1bed", "1br", "1 br", "1", "1 bed", "1 bedroom", "one bedroom", "1bd"],
    "2bed": ["2bed", "2br", "2 br", "2", "2 bed", "2 bedroom", "two bedroom", "2bd"],
    "3bed": ["3bed", "3br", "3 br", "3", "3 bed", "3 bedroom", "three bedroom", "3bd"],
}

UNIT_TYPE_LABELS = {
    "studio": "Studio",
    "1bed": "1 Bedroom",
    "2bed": "2 Bedroom",
    "3bed": "3 Bedroom",
}


def load_mapping(mapping_path: str | Path) -> dict:
    """Load a field mapping config file."""
    with open(mapping_path) as f:
        return json.load(f)


# ── Transforms ────────────────────────────────────────────────────


def _is_blank(raw: Any) -> bool:
    if raw is None:
        return True
    if isinstance(raw, str):
        return raw.strip().lower() in _BLANK
    if isinstance(raw, (list, dict)):
        return not raw
    return False


def _numbers(raw: Any) -> list[float]:
    return [float(n.replace(",", "")) for n in _NUMBER.findall(str(raw))]


def to_text(raw: Any) -> str | None:
    text = str(raw).strip()
    return text or None


def slugify(raw: Any) -> str | None:
    """``"Harbor Point Residences"`` -> ``"harbor-point-residences"``."""
    slug = re.sub(r"[^a-z0-9]+", "-", str(raw).lower()).strip("-")
    return slug or None


def parse_list(raw: Any) -> list[str]:
    """Parse a comma/pipe/semicolon-separated string into a list."""
    if isinstance(raw, (list, tuple)):
        return [str(item).strip() for item in raw if str(item).strip()]
    text = str(raw)
    if text.strip().lower() in _BLANK:
        return []
    # Pipes win when present so commas inside items survive
    if "|" in text:
        parts = text.split("|")
    else:
        parts = text.replace(";", ",").split(",")
    return [p.strip() for p in parts if p.strip()]


def int_from_float(raw: Any) -> int | None:
    """Safely convert a value that might be float-formatted to int."""
    try:
        return int(float(str(raw).strip()))
    except (ValueError, TypeError):
        return None


def float_from_str(raw: Any) -> float | None:
    try:
        return float(str(raw).strip())
    except (ValueError, TypeError):
        return None


def _money(amount: float) -> str:
    return f"${amount:,.0f}" if amount == int(amount) else f"${amount:,.2f}"


def currency(raw: Any) -> str | None:
    """Normalize a currency string: ``"1850.00/mo"`` -> ``"$1,850"``.

    Ranges are handed to currency_range; text without any figure
    (e.g. "Call for pricing") passes through.
    """
    numbers = _numbers(raw)
    if len(numbers) >= 2:
        return currency_range(raw)
    if not numbers:
        return to_text(raw)
    return _money(numbers[0])


def currency_range(raw: Any) -> str | None:
    """``"1400-1650"`` -> ``"$1,400 - $1,650"``; a single figure stays single."""
    numbers = _numbers(raw)
    if not numbers:
        return None
    low, high = min(numbers[:2]), max(numbers[:2])
    if low == high:
        return _money(low)
    return f"{_money(low)} - {_money(high)}"


def area(raw: Any) -> int | None:
    """Area in square feet from ``"750 sq. ft."``, ``"70 m2"`` or a bare number."""
    numbers = _numbers(raw)
    if not numbers:
        return None
    value = numbers[0]
    unit = str(raw).lower()
    if re.search(r"\b(m2|m²|sq\.?\s*m|sqm|square met)", unit):
        value *= SQ_FT_PER_SQ_M
    return int(round(value))


def unit_type(raw: Any) -> str | None:
    """Normalize a unit type label to studio/1bed/2bed/3bed.

    Unrecognized labels come back stripped but otherwise unchanged so
    validation can report the offending value.
    """
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        raw = str(int(raw))
    label = str(raw).strip()
    key = label.lower().replace("-", " ")
    for canonical, aliases in UNIT_TYPE_ALIASES.items():
        if key in aliases or key.replace(" ", "") in aliases:
            return canonical
    return label or None


def plan_name(raw: Any) -> str | None:
    """Floor plan name; a bare unit type becomes its display label."""
    text = to_text(raw)
    return UNIT_TYPE_LABELS.get(text, text) if text else None


def canonical_path(raw: Any) -> str | None:
    """Slug -> ``/buildings/<slug>``; absolute URLs and paths pass through."""
    text = str(raw).strip()
    if not text:
        return None
    if text.startswith(("http://", "https://", "/")):
        return text
    slug = slugify(text)
    return f"/buildings/{slug}" if slug else None


TRANSFORMS: dict[str, Callable[[Any], Any]] = {
    "text": to_text,
    "slug": slugify,
    "parse_list": parse_list,
    "int_from_float": int_from_float,
    "float": float_from_str,
    "currency": currency,
    "currency_range": currency_range,
    "area": area,
    "unit_type": unit_type,
    "plan_name": plan_name,
    "canonical_path": canonical_path,
}


def apply_transform(value: Any, transform: str | None) -> Any:
    """Apply a named transform to a raw legacy value."""
    if not transform:
        return value
    fn = TRANSFORMS.get(transform)
    if fn is None:
        raise ValueError(f"Unknown transform in mapping: {transform!r}")
    return fn(value)


# ── Dotted-path helpers ───────────────────────────────────────────


def get_path(data: Any, path: str) -> Any:
    """Look up a dotted path in nested mappings. Missing -> None."""
    current = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


def set_path(data: dict, path: str, value: Any) -> None:
    parts = path.split(".")
    current = data
    for part in parts[:-1]:
        current = current.setdefault(part, {})
    current[parts[-1]] = value


def pop_path(data: dict, path: str) -> Any:
    parent_path, _, leaf = path.rpartition(".")
    parent = get_path(data, parent_path) if parent_path else data
    if isinstance(parent, dict):
        return parent.pop(leaf, None)
    return None


# ── Field resolution ──────────────────────────────────────────────


@dataclass
class _Trace:
    unmapped: list[str] = field(default_factory=list)   # legacy paths that were dropped
    missing: list[str] = field(default_factory=list)    # required list-item paths left blank


def _as_list(value: Any) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def _resolve_field(
    source: Mapping[str, Any],
    spec: Any,
    resolved: dict,
    consumed: set[str],
    trace: _Trace,
    prefix: str,
    path: str,
) -> Any:
    """Derive the canonical value at ``path`` from a legacy mapping."""
    if isinstance(spec, str):
        spec = {"from": spec}

    value = None
    origin = ""
    for key in _as_list(spec.get("from")):
        root = key.split(".")[0]
        if root in source:
            consumed.add(root)
        raw = get_path(source, key)
        if value is None and not _is_blank(raw):
            value, origin = raw, key

    if value is None and spec.get("fallback"):
        value = get_path(resolved, spec["fallback"])

    if value is not None:
        value = apply_transform(value, spec.get("transform"))
        if _is_blank(value) and not isinstance(value, list):
            value = None

    if value is not None and "items" in spec:
        items: list[dict] = []
        for idx, elem in enumerate(_as_list(value)):
            where = f"{prefix}{origin or path}[{idx}]"
            if isinstance(elem, Mapping):
                items.append(_map_item(elem, spec["items"], trace, where, f"{path}[{len(items)}]"))
            else:
                trace.unmapped.append(where)
        value = items

    if value is None and "default" in spec:
        value = copy.deepcopy(spec["default"])
    return value


def _map_item(
    elem: Mapping[str, Any],
    item_spec: Mapping[str, Any],
    trace: _Trace,
    prefix: str,
    path: str,
) -> dict:
    """Map one element of a list-of-objects field through its sub-mapping."""
    out: dict = {}
    consumed: set[str] = set()
    for field_path, spec in item_spec["fields"].items():
        value = _resolve_field(elem, spec, out, consumed, trace, prefix + ".", f"{path}.{field_path}")
        if value is not None:
            set_path(out, field_path, value)
    trace.unmapped.extend(f"{prefix}.{key}" for key in elem if key not in consumed)
    trace.missing.extend(
        f"{path}.{p}" for p in item_spec.get("required", []) if _is_blank(get_path(out, p))
    )
    return out


def _drop_incomplete(
    record: dict,
    groups: Mapping[str, list[str]],
    record_id: str,
    audit: AuditTrail | None,
) -> None:
    """Remove optional objects that only partly resolved (e.g. a lone latitude)."""
    for group_path, members in groups.items():
        group = get_path(record, group_path)
        if not isinstance(group, dict):
            continue
        absent = [m for m in members if m not in group]
        if not absent:
            continue
        pop_path(record, group_path)
        log.info(
            "Dropping incomplete %s %s (record %s, missing %s)",
            group_path, group, record_id or "?", ", ".join(absent),
        )
        if audit is not None:
            audit.emit("incomplete_field", record_id,
                       {"field": group_path, "missing": absent, "value": group})


def adapt(
    legacy: Mapping[str, Any],
    mapping: Mapping[str, Any] | None = None,
    audit: AuditTrail | None = None,
) -> dict:
    """Map a legacy record onto the canonical (camelCase) record shape.

    The result still has to pass ``buildings.validate.validate``.
    Unmapped legacy keys, non-object entries in list-of-object fields and
    partly resolved optional objects are dropped and reported to the log
    and the audit trail; they never fail the migration.

    Raises:
        MigrationError: listing every required path that could not be
            derived, including required fields of list items
    """
    if mapping is None:
        mapping = load_mapping(DEFAULT_MAPPING)

    record: dict = {}
    consumed: set[str] = set(mapping.get("ignore", []))
    trace = _Trace()

    for path, spec in mapping["fields"].items():
        value = _resolve_field(legacy, spec, record, consumed, trace, "", path)
        if value is not None:
            set_path(record, path, value)

    unmapped = [key for key in legacy if key not in consumed] + trace.unmapped
    record_id = str(record.get("id") or legacy.get("id") or "")

    for field_path in unmapped:
        log.info("Dropping unmapped legacy field %s (record %s)", field_path, record_id or "?")
        if audit is not None:
            audit.emit("unmapped_field", record_id, {"field": field_path})

    _drop_incomplete(record, mapping.get("all_or_none", {}), record_id, audit)

    missing = [p for p in mapping.get("required", []) if _is_blank(get_path(record, p))]
    missing += trace.missing
    if missing:
        raise MigrationError(missing, record_id=record_id)

    return record
