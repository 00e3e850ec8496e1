"""Exceptions for template parsing and rendering."""

from __future__ import annotations

from typing import Optional


class RenderError(Exception):
    """A template is structurally malformed.

    Raised only for template defects (unterminated or mismatched blocks,
    broken tags), never for missing record data.

    Attributes:
        node_index: zero-based index of the offending token in the template
        reason: what is wrong with it
        template_id: template name when known
    """

    def __init__(self, node_index: int, reason: str, template_id: Optional[str] = None):
        self.node_index = node_index
        self.reason = reason
        self.template_id = template_id
        where = f"template {template_id!r}, " if template_id else ""
        super().__init__(f"Malformed template ({where}node {node_index}): {reason}")
