"""Tests for the site build pipeline and the static build command."""

import argparse
import json

import pytest

from buildings.catalog import BuildingCatalog, save_catalog
from buildings.errors import MigrationError
from buildings.ingest import ingest_file
from marketing import build as build_cmd
from marketing.config import Settings
from marketing.personalization.loader import load_rules_jsonl
from marketing.personalization.schema import ViewerContext
from marketing.pipeline import build_site, load_catalog_from_settings, render_building
from marketing.templating.registry import TemplateRegistry

from conftest import RULES_PATH, SAMPLE_LEGACY, TEMPLATES_DIR


@pytest.fixture(scope="module")
def registry():
    return TemplateRegistry.from_directory(TEMPLATES_DIR)


@pytest.fixture(scope="module")
def rules():
    return load_rules_jsonl(RULES_PATH)


@pytest.fixture
def catalog(make_record):
    return BuildingCatalog([
        make_record("gamma", value=5, quiet=4, management=4, amenities=3, location=3),
        make_record("alpha"),
        make_record("beta"),
    ])


class TestRenderBuilding:
    def test_every_template(self, record, registry, rules):
        docs = render_building(record, registry, rules, ViewerContext())
        assert sorted(docs) == ["building_page", "comparison_card", "seo_head"]
        assert "<h1>Harbor Point Residences</h1>" in docs["building_page"]


class TestBuildSite:
    async def test_documents_and_rankings(self, catalog, registry, rules):
        site = await build_site(catalog, registry, rules)
        assert set(site.documents) == {"alpha", "beta", "gamma"}
        assert site.document("gamma", "comparison_card").startswith("### Gamma (3.8/5)")
        assert site.rankings["overall"] == [("alpha", 4.2), ("beta", 4.2), ("gamma", 3.8)]
        assert site.context == ViewerContext()
        assert site.elapsed >= 0

    async def test_personalized_context(self, catalog, registry, rules):
        context = ViewerContext(location_type="waterfront", audience="family")
        site = await build_site(catalog, registry, rules, context)
        for record_id in catalog:
            assert "Room to grow, right on the water" in site.document(record_id, "building_page")

    async def test_deterministic_across_worker_counts(self, catalog, registry, rules):
        serial = await build_site(catalog, registry, rules, max_workers=1)
        parallel = await build_site(catalog, registry, rules, max_workers=8)
        assert serial.documents == parallel.documents
        assert serial.rankings == parallel.rankings

    async def test_empty_catalog(self, registry):
        site = await build_site(BuildingCatalog(), registry)
        assert site.documents == {}
        assert site.rankings["overall"] == []


class TestLoadCatalogFromSettings:
    def test_prefers_canonical_catalog(self, tmp_path, record):
        path = tmp_path / "catalog.json"
        save_catalog(BuildingCatalog([record]), path)
        catalog, report = load_catalog_from_settings(Settings(catalog_path=str(path)))
        assert list(catalog) == ["harbor-point"]
        assert report is None

    def test_falls_back_to_legacy_source(self, tmp_path):
        settings = Settings(catalog_path=str(tmp_path / "missing.json"), legacy_source=str(SAMPLE_LEGACY))
        catalog, report = load_catalog_from_settings(settings)
        assert len(catalog) == 3
        assert report.ok

    def test_nothing_configured(self, tmp_path):
        settings = Settings(catalog_path="", legacy_source=str(tmp_path / "none.json"))
        catalog, report = load_catalog_from_settings(settings)
        assert len(catalog) == 0
        assert report is None

    def test_strict_ingest(self, tmp_path):
        legacy = tmp_path / "legacy.json"
        legacy.write_text(json.dumps([{"building_name": "Half Done"}]))
        settings = Settings(catalog_path="", legacy_source=str(legacy), strict_ingest=True)
        with pytest.raises(MigrationError):
            load_catalog_from_settings(settings)


class TestBuildCommand:
    async def test_run_writes_site(self, tmp_path, monkeypatch):
        catalog_path = tmp_path / "catalog.json"
        out = tmp_path / "dist"
        monkeypatch.setattr(build_cmd.settings, "catalog_path", "")
        monkeypatch.setattr(build_cmd.settings, "templates_dir", str(TEMPLATES_DIR))
        monkeypatch.setattr(build_cmd.settings, "rules_path", str(RULES_PATH))

        save_catalog(ingest_file(SAMPLE_LEGACY).catalog, catalog_path)
        args = argparse.Namespace(
            catalog=str(catalog_path), output=str(out),
            location_type="waterfront", audience="general",
        )
        assert await build_cmd.run(args) == 0
        assert build_cmd.settings.catalog_path == ""

        page = (out / "harbor-point" / "building_page.html").read_text()
        assert "Wake up to the water every morning" in page
        assert (out / "the-mercer" / "comparison_card.md").is_file()

        rankings = json.loads((out / "rankings.json").read_text())
        assert rankings["overall"][0] == {"id": "harbor-point", "score": 4.2}
        assert [r["id"] for r in rankings["value"]] == ["oak-hollow", "harbor-point", "the-mercer"]
