"""FastAPI application: on-demand page previews and score comparisons.

Endpoints:

  GET /health                                   Health check
  GET /api/buildings                            Building ids, names and overall scores
  GET /api/buildings/{building_id}              Canonical record
  GET /api/buildings/{building_id}/scores       Score breakdown for charts
  GET /api/compare?priority=overall             Ranked comparison list
  GET /buildings/{building_id}/{template_id}    Rendered page (?location_type=&audience=)

Catalog, templates and personalization rules are loaded once when the app
is created and treated as read-only afterwards.
"""

from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

import logging
import time

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import FastAPI, Query
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from buildings.catalog import BuildingCatalog
from marketing.config import settings
from marketing.personalization.loader import load_rules_jsonl
from marketing.personalization.schema import Audience, LocationType, PersonalizationRule, ViewerContext
from marketing.personalization.selector import select
from marketing.pipeline import load_catalog_from_settings
from marketing.scoring import compare, score_breakdown
from marketing.templating.registry import TemplateRegistry
from marketing.templating.renderer import render

log = logging.getLogger("marketing.app")

_START_TIME = time.time()


def create_app(
    catalog: BuildingCatalog | None = None,
    registry: TemplateRegistry | None = None,
    rules: tuple[PersonalizationRule, ...] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Anything not passed in is loaded from settings.
    """
    if catalog is None:
        for warning in settings.validate_startup():
            log.warning(warning)
        catalog, _ = load_catalog_from_settings(settings)
    if registry is None:
        registry = TemplateRegistry.from_directory(settings.templates_dir)
    if rules is None:
        rules = load_rules_jsonl(settings.rules_path)

    app = FastAPI(
        title="Building Marketing Pages",
        description="Rendered building pages, personalization previews and score comparisons",
        version="0.1.0",
    )
    app.state.catalog = catalog
    app.state.registry = registry
    app.state.rules = rules

    def _not_found(detail: str) -> JSONResponse:
        return JSONResponse({"error": detail}, status_code=404)

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({
            "status": "ok",
            "uptime": uptime,
            "buildings": len(catalog),
            "templates": len(registry),
        })

    # ── Catalog API ────────────────────────────────────────────

    @app.get("/api/buildings")
    async def list_buildings() -> JSONResponse:
        return JSONResponse({
            "buildings": [
                {"id": r.id, "name": r.name, "overall": r.scores.overall}
                for r in catalog.values()
            ],
            "count": len(catalog),
        })

    @app.get("/api/buildings/{building_id}")
    async def get_building(building_id: str) -> JSONResponse:
        record = catalog.get(building_id)
        if record is None:
            return _not_found(f"Building not found: {building_id}")
        return JSONResponse(record.to_canonical())

    @app.get("/api/buildings/{building_id}/scores")
    async def get_scores(building_id: str) -> JSONResponse:
        record = catalog.get(building_id)
        if record is None:
            return _not_found(f"Building not found: {building_id}")
        return JSONResponse({"id": record.id, "scores": score_breakdown(record)})

    @app.get("/api/compare")
    async def compare_buildings(priority: str = "overall") -> JSONResponse:
        try:
            ranked = compare(catalog.values(), priority)
        except ValueError as exc:
            return JSONResponse({"error": str(exc)}, status_code=400)
        return JSONResponse({
            "priority": priority,
            "ranking": [{"id": record_id, "score": score} for record_id, score in ranked],
        })

    # ── Rendered pages ─────────────────────────────────────────

    @app.get("/buildings/{building_id}/{template_id}")
    async def render_page(
        building_id: str,
        template_id: str,
        location_type: LocationType = Query(default="other"),
        audience: Audience = Query(default="general"),
    ) -> Response:
        record = catalog.get(building_id)
        if record is None:
            return _not_found(f"Building not found: {building_id}")
        if template_id not in registry:
            return _not_found(f"Template not found: {template_id}")

        template = registry.get(template_id)
        context = ViewerContext(location_type=location_type, audience=audience)
        body = render(template, record, select(record, context, rules))
        log.info("Rendered %s/%s for %s", building_id, template_id, context.key)

        if template.autoescape:
            return HTMLResponse(body)
        return PlainTextResponse(body)

    return app


# ── Entry point: uvicorn builds the app via the factory ────────

if __name__ == "__main__":
    import uvicorn

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )

    uvicorn.run(
        "marketing.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=log_config,
    )
