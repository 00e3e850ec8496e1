"""Ingest legacy building records into a validated catalog.

Sources can be a JSON export, a CSV export, or the CMS content API.

Usage:
    # Migrate the bundled sample export
    python -m buildings.ingest data/sample/legacy_buildings.json -o build/catalog.json

    # CSV export with a custom field mapping
    python -m buildings.ingest exports/buildings.csv --mapping-file my_mapping.json

    # Pull from the CMS content API
    CONTENT_STORE_URL=https://cms.example.com/api/buildings python -m buildings.ingest --cms
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

import httpx

from buildings.audit import AuditTrail
from buildings.catalog import BuildingCatalog, save_catalog
from buildings.errors import DuplicateBuildingError, MigrationError, RecordValidationError
from buildings.migrate import DEFAULT_MAPPING, adapt, load_mapping
from buildings.validate import validate

csv.field_size_limit(10 * 1024 * 1024)  # 10 MB, long description fields

log = logging.getLogger("buildings.ingest")

PAGE_LIMIT = 100


@dataclass
class IngestFailure:
    index: int
    record_id: str
    error: Exception

    def describe(self) -> str:
        label = self.record_id or f"#{self.index}"
        return f"{label}: {self.error}"


@dataclass
class IngestReport:
    """Outcome of one ingestion run. Failed records are listed, never dropped silently."""

    catalog: BuildingCatalog
    failures: list[IngestFailure] = field(default_factory=list)
    audit: AuditTrail = field(default_factory=AuditTrail)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        """Strict mode: abort on the first failed record."""
        if self.failures:
            raise self.failures[0].error


# ── Readers ────────────────────────────────────────────────────────


def read_legacy_json(path: str | Path) -> list[dict]:
    """Read a JSON export: a bare array or ``{"buildings": [...]}``."""
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if isinstance(raw, dict):
        raw = raw.get("buildings") or raw.get("records") or []
    return [item for item in raw if isinstance(item, dict)]


def _detect_delimiter(csv_path: str | Path) -> str:
    """Detect CSV delimiter by inspecting the header line."""
    with open(csv_path, encoding="utf-8", errors="replace") as f:
        header = f.readline()
    for delim in [";", "\t", "|"]:
        if header.count(delim) > header.count(","):
            return delim
    return ","


def read_legacy_csv(csv_path: str | Path) -> list[dict]:
    """Read a flat CSV export; empty cells are dropped."""
    delimiter = _detect_delimiter(csv_path)
    rows: list[dict] = []
    with open(csv_path, newline="", encoding="utf-8", errors="replace") as f:
        reader = csv.DictReader(f, delimiter=delimiter)
        for row in reader:
            rows.append({k.strip(): v.strip() for k, v in row.items()
                         if k and v is not None and v.strip()})
    return rows


def read_legacy_file(path: str | Path) -> list[dict]:
    path = Path(path)
    if path.suffix.lower() in (".csv", ".tsv"):
        return read_legacy_csv(path)
    return read_legacy_json(path)


async def fetch_legacy_records(
    url: str,
    token: str = "",
    client: httpx.AsyncClient | None = None,
) -> list[dict]:
    """Page through the CMS content API and return every legacy record.

    Each page is ``{"records": [...], "next": "<url or null>"}``; a bare
    JSON array is treated as a single page.
    """
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=30)

    records: list[dict] = []
    next_url: str | None = url
    params: dict[str, Any] | None = {"limit": PAGE_LIMIT}
    try:
        while next_url:
            resp = await client.get(next_url, params=params, headers=headers)
            resp.raise_for_status()
            data = resp.json()
            if isinstance(data, list):
                records.extend(data)
                break
            records.extend(data.get("records", []))
            next_url = data.get("next")
            params = None  # "next" links carry their own query string
            log.info("Fetched %d record(s) so far from %s", len(records), url)
    finally:
        if owns_client:
            await client.aclose()
    return [r for r in records if isinstance(r, dict)]


# ── Migration + validation ─────────────────────────────────────────


def ingest_records(
    legacy_records: Iterable[Mapping[str, Any]],
    mapping: Mapping[str, Any] | None = None,
    source: str = "",
) -> IngestReport:
    """Migrate, validate and catalog legacy records.

    Every record that cannot be migrated, validated or cataloged is
    listed in the report's failures and on its audit trail.
    """
    if mapping is None:
        mapping = load_mapping(DEFAULT_MAPPING)

    audit = AuditTrail(source)
    report = IngestReport(catalog=BuildingCatalog(), audit=audit)

    for idx, legacy in enumerate(legacy_records):
        record_id = ""
        try:
            canonical = adapt(legacy, mapping, audit=audit)
            record_id = canonical["id"]
            report.catalog.add(validate(canonical))
        except MigrationError as exc:
            audit.emit("migration_failed", exc.record_id, {"missing": exc.missing_required})
            report.failures.append(IngestFailure(idx, exc.record_id, exc))
        except RecordValidationError as exc:
            audit.emit("validation_failed", record_id, {"violations": [str(v) for v in exc.violations]})
            report.failures.append(IngestFailure(idx, record_id, exc))
        except DuplicateBuildingError as exc:
            audit.emit("duplicate", record_id, {})
            report.failures.append(IngestFailure(idx, record_id, exc))
        else:
            audit.emit("ingested", record_id, {})

    for failure in report.failures:
        log.warning("Skipped legacy record %s", failure.describe())
    log.info("Ingested %d building(s), %d failure(s)", len(report.catalog), len(report.failures))
    return report


def ingest_file(path: str | Path, mapping: Mapping[str, Any] | None = None) -> IngestReport:
    """Read a legacy export file and ingest it."""
    return ingest_records(read_legacy_file(path), mapping, source=str(path))


async def ingest_cms(
    url: str,
    token: str = "",
    mapping: Mapping[str, Any] | None = None,
    client: httpx.AsyncClient | None = None,
) -> IngestReport:
    """Fetch legacy records from the CMS content API and ingest them."""
    legacy = await fetch_legacy_records(url, token=token, client=client)
    return ingest_records(legacy, mapping, source=url)


def main():
    from marketing.config import settings

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="Migrate legacy building exports into a canonical catalog",
        prog="python -m buildings.ingest",
    )
    parser.add_argument("source", nargs="?", help="Legacy JSON or CSV export")
    parser.add_argument("--cms", action="store_true",
                        help="Fetch from CONTENT_STORE_URL instead of a file")
    parser.add_argument("--output", "-o", help="Catalog JSON path (default: stdout)")
    parser.add_argument(
        "--mapping-file",
        default=settings.legacy_mapping_path or str(DEFAULT_MAPPING),
        help="Field mapping JSON file (default: legacy CMS mapping)",
    )
    parser.add_argument("--strict", action="store_true", default=settings.strict_ingest,
                        help="Exit non-zero if any record fails")
    args = parser.parse_args()

    mapping = load_mapping(args.mapping_file)
    if args.cms:
        if not settings.content_store_url:
            parser.error("--cms requires CONTENT_STORE_URL")
        report = asyncio.run(ingest_cms(
            settings.content_store_url, token=settings.content_store_token, mapping=mapping,
        ))
    elif args.source:
        report = ingest_file(args.source, mapping)
    else:
        parser.error("a source file or --cms is required")

    if args.output:
        save_catalog(report.catalog, args.output)
    else:
        json.dump(report.catalog.to_json(), sys.stdout, indent=2)
        print(f"\n# {len(report.catalog)} buildings", file=sys.stderr)

    for failure in report.failures:
        print(f"FAILED {failure.describe()}", file=sys.stderr)
    if args.strict and not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
