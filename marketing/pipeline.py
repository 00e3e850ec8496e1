"""Site build pipeline: personalize, render and rank every building.

Per building the stages run in order (select variants, render each
template); different buildings render concurrently in worker threads
with no shared state between them.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from buildings.catalog import BuildingCatalog, load_catalog
from buildings.ingest import IngestReport, ingest_file
from buildings.migrate import load_mapping
from buildings.schema import BuildingRecord
from marketing.config import Settings
from marketing.personalization.schema import PersonalizationRule, ViewerContext
from marketing.personalization.selector import select
from marketing.scoring import rank_all
from marketing.templating.nodes import Template
from marketing.templating.renderer import render

log = logging.getLogger("marketing.pipeline")


@dataclass
class SiteBuild:
    """Rendered documents keyed by building id then template id, plus rankings."""

    context: ViewerContext
    documents: dict[str, dict[str, str]] = field(default_factory=dict)
    rankings: dict[str, list[tuple[str, float]]] = field(default_factory=dict)
    elapsed: float = 0.0

    def document(self, record_id: str, template_id: str) -> str:
        return self.documents[record_id][template_id]


def render_building(
    record: BuildingRecord,
    templates: Iterable[Template],
    rules: Iterable[PersonalizationRule] = (),
    context: Optional[ViewerContext] = None,
) -> dict[str, str]:
    """Render every template for one building. Pure; safe to run in any thread."""
    variants = select(record, context, rules)
    return {template.id: render(template, record, variants) for template in templates}


async def build_site(
    catalog: BuildingCatalog,
    templates: Iterable[Template],
    rules: Iterable[PersonalizationRule] = (),
    context: Optional[ViewerContext] = None,
    max_workers: int = 8,
) -> SiteBuild:
    """Render all buildings concurrently and compute rankings."""
    started = time.monotonic()
    context = context or ViewerContext()
    templates = tuple(templates)
    rules = tuple(rules)
    semaphore = asyncio.Semaphore(max_workers)

    async def _one(record: BuildingRecord) -> tuple[str, dict[str, str]]:
        async with semaphore:
            docs = await asyncio.to_thread(render_building, record, templates, rules, context)
        return record.id, docs

    results = await asyncio.gather(*(_one(record) for record in catalog.values()))

    build = SiteBuild(
        context=context,
        documents=dict(results),
        rankings=rank_all(catalog.values()),
    )
    build.elapsed = time.monotonic() - started
    log.info(
        "Rendered %d building(s) x %d template(s) for %s in %.2fs",
        len(build.documents), len(templates), context.key, build.elapsed,
    )
    return build


def load_catalog_from_settings(settings: Settings) -> tuple[BuildingCatalog, Optional[IngestReport]]:
    """Load the canonical catalog, or ingest the legacy source when none is configured.

    Returns the catalog and, for legacy ingestion, the ingest report.
    In strict mode any failed legacy record aborts the load.
    """
    if settings.catalog_path and Path(settings.catalog_path).is_file():
        return load_catalog(settings.catalog_path), None

    if not Path(settings.legacy_source).is_file():
        log.warning("No catalog or legacy source found; starting with an empty catalog")
        return BuildingCatalog(), None

    mapping = load_mapping(settings.legacy_mapping_path) if settings.legacy_mapping_path else None
    report = ingest_file(settings.legacy_source, mapping)
    if settings.strict_ingest:
        report.raise_for_failures()
    return report.catalog, report
