"""Render parsed templates against a building record and its variant overlay.

Missing data never fails a render: an unresolved interpolation prints
nothing, an unresolved ``#if`` is false and an unresolved ``#each`` loops
zero times. Only malformed templates raise (from the parser).
"""

from __future__ import annotations

import html
from collections.abc import Mapping
from typing import Any, Callable, Optional, Sequence

from buildings.schema import BuildingRecord
from marketing.personalization.schema import VariantSet
from marketing.templating.nodes import Each, If, Interpolate, Node, Template, Text
from marketing.templating.parser import parse_template

_MISSING = object()

Escape = Callable[[str], str]


def build_view(
    record: BuildingRecord | Mapping[str, Any],
    variants: Optional[VariantSet] = None,
) -> dict[str, Any]:
    """Merged view a template sees: ``{"building": record + overlay}``.

    The overlay replaces ``overview.tagline`` and ``overview.keyFeatures``.
    The record itself is never modified.
    """
    if isinstance(record, BuildingRecord):
        building = record.to_canonical()
    else:
        building = dict(record)

    if variants is not None:
        overview = dict(building.get("overview") or {})
        overview["tagline"] = variants.tagline
        overview["keyFeatures"] = [
            h.model_dump(by_alias=True, exclude_none=True, mode="json")
            for h in variants.highlights
        ]
        building["overview"] = overview

    return {"building": building}


def _walk(value: Any, parts: Sequence[str]) -> Any:
    for part in parts:
        if isinstance(value, Mapping):
            value = value.get(part, _MISSING)
        elif isinstance(value, (list, tuple)) and part.isdigit() and int(part) < len(value):
            value = value[int(part)]
        else:
            return _MISSING
        if value is _MISSING:
            return _MISSING
    return value


def resolve(path: str, scopes: Sequence[Any]) -> Any:
    """Resolve a dotted path against the scope chain (innermost last).

    ``this`` is the innermost scope and other paths are relative to it.
    Only ``building.*`` paths fall back to the root view, so a field the
    current element lacks never picks up an outer element's value.
    """
    parts = path.split(".")
    if parts[0] == "this":
        return _walk(scopes[-1], parts[1:])
    value = _walk(scopes[-1], parts)
    if value is _MISSING and parts[0] == "building" and len(scopes) > 1:
        value = _walk(scopes[0], parts)
    return value


def is_truthy(value: Any) -> bool:
    """Empty string, empty list, absent and numeric zero are false."""
    if value is _MISSING or value is None:
        return False
    if isinstance(value, (bool, int, float)):
        return value != 0
    if isinstance(value, (str, list, tuple)):
        return len(value) > 0
    return True


def to_text(value: Any) -> str:
    if value is _MISSING or value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ", ".join(to_text(v) for v in value if not isinstance(v, Mapping))
    # mappings have no text form
    return ""


def _render_nodes(
    nodes: Sequence[Node],
    scopes: tuple[Any, ...],
    out: list[str],
    escape: Optional[Escape],
) -> None:
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.value)
        elif isinstance(node, Interpolate):
            text = to_text(resolve(node.path, scopes))
            out.append(escape(text) if escape else text)
        elif isinstance(node, If):
            branch = node.body if is_truthy(resolve(node.path, scopes)) else node.orelse
            _render_nodes(branch, scopes, out, escape)
        elif isinstance(node, Each):
            items = resolve(node.path, scopes)
            if not isinstance(items, (list, tuple)):
                continue
            for item in items:
                _render_nodes(node.body, scopes + (item,), out, escape)
        else:
            raise TypeError(f"Unknown template node: {node!r}")


def render(
    template: Template | str | Sequence[Node],
    record: BuildingRecord | Mapping[str, Any],
    variants: Optional[VariantSet] = None,
    escape: Optional[Escape] = None,
) -> str:
    """Render a template for one building.

    ``template`` may be a parsed Template, raw source, or a node sequence.
    When ``escape`` is not given, HTML escaping follows the template's
    ``autoescape`` flag.

    Raises:
        RenderError: if raw source is malformed
    """
    if isinstance(template, Template):
        nodes = template.nodes
        if escape is None and template.autoescape:
            escape = html.escape
    elif isinstance(template, str):
        nodes = parse_template(template)
    else:
        nodes = tuple(template)

    out: list[str] = []
    _render_nodes(nodes, (build_view(record, variants),), out, escape)
    return "".join(out)
