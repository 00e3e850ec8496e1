"""Shared fixtures: canonical record data and the bundled sample content."""

import copy
import os
import sys
from pathlib import Path

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from buildings.schema import BuildingRecord

ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT / "data"
SAMPLE_LEGACY = DATA_DIR / "sample" / "legacy_buildings.json"
TEMPLATES_DIR = DATA_DIR / "templates"
RULES_PATH = DATA_DIR / "personalization" / "rules.jsonl"

_RECORD = {
    "id": "harbor-point",
    "name": "Harbor Point Residences",
    "location": {
        "address": "200 Lakeshore Blvd",
        "city": "Austin",
        "state": "TX",
        "zipCode": "78704",
        "neighborhood": "Lady Bird Lake",
    },
    "overview": {
        "tagline": "Lakefront living minutes from downtown",
        "description": "Quiet lakeside homes a short ride from Congress Avenue.",
        "keyFeatures": [
            {"title": "Private boat dock", "description": "Kayak storage for residents.", "icon": "anchor"},
        ],
    },
    "pricing": {
        "studioRange": "$1,400 - $1,650",
        "currentSpecials": ["First month free"],
        "moveInCosts": {"deposit": "$500", "fees": ["Application fee $50"]},
    },
    "floorPlans": [
        {"type": "studio", "name": "The Cove", "sqFt": 520, "price": "$1,400",
         "availability": "Available now", "features": ["Lake view"]},
        {"type": "1bed", "name": "The Marina", "sqFt": 740, "price": "$1,850"},
    ],
    "amenities": [
        {"category": "Outdoors", "items": [{"name": "Boat dock", "icon": "anchor"}]},
    ],
    "scores": {"value": 4, "quiet": 5, "management": 3, "amenities": 4, "location": 5},
    "reviews": {"pros": ["Water views"], "cons": ["Limited guest parking"]},
    "contact": {"phone": "(512) 555-0142", "email": "leasing@harborpoint.example.com"},
    "media": {"heroImage": "/img/harbor-point/hero.jpg"},
    "seo": {
        "title": "Harbor Point Residences",
        "description": "Lakefront apartments in Austin",
        "canonicalUrl": "/buildings/harbor-point",
    },
}


@pytest.fixture
def record_data() -> dict:
    """A valid canonical record as plain data (safe to modify)."""
    return copy.deepcopy(_RECORD)


@pytest.fixture
def record(record_data) -> BuildingRecord:
    return BuildingRecord.model_validate(record_data)


@pytest.fixture
def make_record():
    """Factory: a valid record with the given id, name and scores."""

    def _make(record_id: str, name: str = "", **scores) -> BuildingRecord:
        data = copy.deepcopy(_RECORD)
        data["id"] = record_id
        data["name"] = name or record_id.replace("-", " ").title()
        data["scores"].update(scores)
        return BuildingRecord.model_validate(data)

    return _make
