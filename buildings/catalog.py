"""In-memory building catalog: the read source for rendering and scoring."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Iterable, Iterator

from buildings.errors import DuplicateBuildingError
from buildings.schema import BuildingRecord
from buildings.validate import validate

log = logging.getLogger("buildings.catalog")


class BuildingCatalog(Mapping):
    """Validated building records keyed by id, in insertion order.

    Ids are unique for the catalog's lifetime. Only the ingestion path
    calls ``add``; renderers and scorers treat the catalog as read-only.
    """

    def __init__(self, records: Iterable[BuildingRecord] = ()) -> None:
        self._records: dict[str, BuildingRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: BuildingRecord) -> None:
        if record.id in self._records:
            raise DuplicateBuildingError(record.id)
        self._records[record.id] = record

    def __getitem__(self, record_id: str) -> BuildingRecord:
        return self._records[record_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def records(self) -> list[BuildingRecord]:
        return list(self._records.values())

    def to_json(self) -> list[dict]:
        return [record.to_canonical() for record in self._records.values()]


def save_catalog(catalog: BuildingCatalog, path: str | Path) -> None:
    """Write the catalog as a JSON array of canonical records."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(catalog.to_json(), indent=2) + "\n", encoding="utf-8")
    log.info("Saved %d building(s) to %s", len(catalog), path)


def load_catalog(path: str | Path) -> BuildingCatalog:
    """Load a catalog previously written by ``save_catalog``.

    Every record is re-validated; the first invalid record raises
    RecordValidationError and a repeated id raises DuplicateBuildingError.
    """
    path = Path(path)
    raw = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("buildings", [])
    catalog = BuildingCatalog(validate(item) for item in raw)
    log.info("Loaded %d building(s) from %s", len(catalog), path)
    return catalog
