"""Build the static marketing pages and comparison rankings.

Usage:
    # Render every template for every building into dist/
    python -m marketing.build

    # Waterfront / family variant of the site from a prepared catalog
    python -m marketing.build --catalog build/catalog.json \
        --location-type waterfront --audience family --output dist/waterfront-family

Writes ``<output>/<building id>/<template id><ext>`` for each page and
``<output>/rankings.json`` with one ranked list per priority.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from marketing.config import settings
from marketing.personalization.loader import load_rules_jsonl
from marketing.personalization.schema import ViewerContext
from marketing.pipeline import SiteBuild, build_site, load_catalog_from_settings
from marketing.templating.registry import TemplateRegistry

log = logging.getLogger("marketing.build")


def write_site(build: SiteBuild, registry: TemplateRegistry, output_dir: str | Path) -> int:
    """Write rendered documents and rankings. Returns the number of pages written."""
    output_dir = Path(output_dir)
    pages = 0
    for record_id, docs in build.documents.items():
        building_dir = output_dir / record_id
        building_dir.mkdir(parents=True, exist_ok=True)
        for template_id, text in docs.items():
            (building_dir / f"{template_id}{registry.suffix(template_id)}").write_text(text, encoding="utf-8")
            pages += 1

    rankings = {
        priority: [{"id": record_id, "score": score} for record_id, score in ranked]
        for priority, ranked in build.rankings.items()
    }
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / "rankings.json").write_text(json.dumps(rankings, indent=2) + "\n", encoding="utf-8")
    return pages


async def run(args: argparse.Namespace) -> int:
    config = settings.model_copy(update={"catalog_path": args.catalog}) if args.catalog else settings

    for warning in config.validate_startup():
        log.warning(warning)

    catalog, report = load_catalog_from_settings(config)
    if report is not None:
        for failure in report.failures:
            log.warning("Skipped %s", failure.describe())

    registry = TemplateRegistry.from_directory(config.templates_dir)
    rules = load_rules_jsonl(config.rules_path)
    context = ViewerContext(location_type=args.location_type, audience=args.audience)

    build = await build_site(catalog, registry, rules, context, max_workers=config.render_workers)
    pages = write_site(build, registry, args.output)
    log.info("Wrote %d page(s) to %s", pages, args.output)
    return 0 if report is None or report.ok else 2


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Render building marketing pages and rankings",
        prog="python -m marketing.build",
    )
    parser.add_argument("--catalog", help="Canonical catalog JSON (default: CATALOG_PATH or legacy source)")
    parser.add_argument("--output", "-o", default=settings.output_dir, help="Output directory")
    parser.add_argument(
        "--location-type", default="other",
        choices=["urban", "suburban", "waterfront", "other"],
    )
    parser.add_argument(
        "--audience", default="general",
        choices=["youngProfessional", "family", "retiree", "general"],
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
