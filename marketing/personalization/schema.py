"""Pydantic models for viewer contexts, personalization rules and variant overlays."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from buildings.schema import KeyFeature

LocationType = Literal["urban", "suburban", "waterfront", "other"]
Audience = Literal["youngProfessional", "family", "retiree", "general"]
Slot = Literal["tagline", "highlights"]

SLOTS: tuple[str, ...] = ("tagline", "highlights")
WILDCARD = "*"

MAX_HIGHLIGHTS = 3


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ViewerContext(_Model):
    """Who is looking: where they are browsing from and which segment they belong to."""

    location_type: LocationType = "other"
    audience: Audience = "general"

    @property
    def key(self) -> str:
        return f"{self.location_type}.{self.audience}"


class PersonalizationRule(_Model):
    """One row of the rule table. ``*`` matches any value."""

    id: str = Field(min_length=1)
    slot: Slot
    location_type: LocationType | Literal["*"] = WILDCARD
    audience: Audience | Literal["*"] = WILDCARD
    buildings: list[str] = []              # empty = any building
    tagline: str = ""                      # content for the tagline slot
    highlights: list[KeyFeature] = []      # content for the highlights slot

    @model_validator(mode="after")
    def _check_content(self) -> "PersonalizationRule":
        if self.slot == "tagline" and not self.tagline:
            raise ValueError(f"rule {self.id!r}: tagline slot needs a non-empty tagline")
        if self.slot == "highlights" and not 1 <= len(self.highlights) <= MAX_HIGHLIGHTS:
            raise ValueError(
                f"rule {self.id!r}: highlights slot needs 1-{MAX_HIGHLIGHTS} highlights"
            )
        return self

    def matches(self, record_id: str, context: ViewerContext) -> bool:
        if self.location_type != WILDCARD and self.location_type != context.location_type:
            return False
        if self.audience != WILDCARD and self.audience != context.audience:
            return False
        return not self.buildings or record_id in self.buildings


class VariantSet(_Model):
    """Overlay consumed by the renderer at the personalizable slots."""

    tagline: str
    highlights: list[KeyFeature] = []
    # slot -> id of the rule that filled it (None = record's own content)
    sources: dict[str, Optional[str]] = {}
