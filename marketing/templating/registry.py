"""Registry of parsed page templates.

Templates live as plain files in one directory; the file stem is the
template id (``building_page.html`` -> ``building_page``). Everything is
parsed once at load, so a malformed template fails the build up front
instead of surfacing per record. ``.html`` templates are HTML-escaped on
interpolation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from marketing.templating.nodes import Template
from marketing.templating.parser import parse_template

log = logging.getLogger("marketing.templating.registry")

TEMPLATE_SUFFIXES = (".html", ".txt", ".md")
AUTOESCAPE_SUFFIXES = (".html",)


class TemplateNotFound(KeyError):
    pass


class TemplateRegistry:
    """Read-only set of parsed templates keyed by id."""

    def __init__(self, templates: dict[str, Template] | None = None) -> None:
        self._templates: dict[str, Template] = dict(templates or {})
        self._suffixes: dict[str, str] = {}

    @classmethod
    def from_directory(cls, directory: str | Path) -> "TemplateRegistry":
        """Parse every template file in ``directory``.

        Raises:
            FileNotFoundError: if the directory does not exist
            RenderError: for the first malformed template
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f"Template directory not found: {directory}")

        registry = cls()
        for path in sorted(directory.iterdir()):
            if path.suffix.lower() not in TEMPLATE_SUFFIXES or not path.is_file():
                continue
            registry.add_source(
                path.stem,
                path.read_text(encoding="utf-8"),
                autoescape=path.suffix.lower() in AUTOESCAPE_SUFFIXES,
                suffix=path.suffix.lower(),
            )
        log.info("Loaded %d template(s) from %s", len(registry), directory)
        return registry

    def add_source(self, template_id: str, source: str, autoescape: bool = False, suffix: str = ".txt") -> Template:
        """Parse and register one template. Raises RenderError if malformed."""
        if template_id in self._templates:
            raise ValueError(f"Duplicate template id: {template_id!r}")
        template = Template(
            id=template_id,
            nodes=parse_template(source, template_id=template_id),
            autoescape=autoescape,
        )
        self._templates[template_id] = template
        self._suffixes[template_id] = suffix
        return template

    def get(self, template_id: str) -> Template:
        try:
            return self._templates[template_id]
        except KeyError:
            raise TemplateNotFound(f"Unknown template: {template_id!r}") from None

    def suffix(self, template_id: str) -> str:
        """File extension the template was loaded with (for output naming)."""
        return self._suffixes.get(template_id, ".txt")

    @property
    def ids(self) -> list[str]:
        return list(self._templates)

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._templates

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)
