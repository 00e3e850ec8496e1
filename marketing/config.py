"""Application configuration via environment variables."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic_settings import BaseSettings

log = logging.getLogger("marketing.config")

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"


class Settings(BaseSettings):
    # Content sources
    catalog_path: str = ""                 # canonical catalog JSON (preferred)
    legacy_source: str = str(DATA_DIR / "sample" / "legacy_buildings.json")
    legacy_mapping_path: str = ""          # empty = bundled legacy CMS mapping
    content_store_url: str = ""
    content_store_token: str = ""
    strict_ingest: bool = False

    # Rendering
    templates_dir: str = str(DATA_DIR / "templates")
    rules_path: str = str(DATA_DIR / "personalization" / "rules.jsonl")
    output_dir: str = "dist"
    render_workers: int = 8

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []

        if not Path(self.templates_dir).is_dir():
            raise ValueError(
                f"TEMPLATES_DIR {self.templates_dir!r} does not exist. "
                "Point it at the directory holding the page templates."
            )

        if not Path(self.rules_path).is_file():
            raise ValueError(
                f"RULES_PATH {self.rules_path!r} does not exist. "
                "An empty file disables personalization."
            )

        if self.render_workers < 1:
            raise ValueError("RENDER_WORKERS must be at least 1.")

        if self.catalog_path and not Path(self.catalog_path).is_file():
            warnings.append(
                f"CATALOG_PATH {self.catalog_path!r} not found; falling back to LEGACY_SOURCE."
            )

        if not self.catalog_path and not Path(self.legacy_source).is_file():
            warnings.append(
                "Neither CATALOG_PATH nor LEGACY_SOURCE points at a file; the catalog will be empty."
            )

        if self.content_store_url and not self.content_store_token:
            warnings.append("CONTENT_STORE_URL set without CONTENT_STORE_TOKEN; requests are unauthenticated.")

        return warnings


settings = Settings()
