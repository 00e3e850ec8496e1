"""Pydantic models for canonical building records.

Attribute names are snake_case; the canonical (wire and template) names are
the camelCase aliases, e.g. ``floor_plans`` is ``floorPlans``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Any, Iterable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

FloorPlanType = Literal["studio", "1bed", "2bed", "3bed"]
ComponentScore = Annotated[int, Field(ge=1, le=5)]

SCORE_COMPONENTS = ("value", "quiet", "management", "amenities", "location")


def overall_from_components(components: Iterable[int]) -> float:
    """Mean of the component scores rounded half-up to one decimal."""
    values = list(components)
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class CanonicalModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class Coordinates(CanonicalModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Location(CanonicalModel):
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    neighborhood: str = ""
    coordinates: Optional[Coordinates] = None


class KeyFeature(CanonicalModel):
    title: str
    description: str = ""
    icon: str = ""


class Overview(CanonicalModel):
    tagline: str
    description: str
    key_features: list[KeyFeature] = []


class MoveInCosts(CanonicalModel):
    deposit: str = ""
    fees: list[str] = []


class Pricing(CanonicalModel):
    studio_range: Optional[str] = None
    one_bed_range: Optional[str] = None
    two_bed_range: Optional[str] = None
    three_bed_range: Optional[str] = None
    current_specials: list[str] = []
    move_in_costs: MoveInCosts = MoveInCosts()


class FloorPlan(CanonicalModel):
    type: FloorPlanType
    name: str
    sq_ft: int = Field(gt=0)
    price: str
    availability: str = ""
    features: list[str] = []
    image_url: Optional[str] = None


class AmenityItem(CanonicalModel):
    name: str
    icon: str = ""
    description: Optional[str] = None


class AmenityCategory(CanonicalModel):
    category: str
    items: list[AmenityItem] = []


class Scores(CanonicalModel):
    """Five component scores; ``overall`` is always derived from them."""

    value: ComponentScore
    quiet: ComponentScore
    management: ComponentScore
    amenities: ComponentScore
    location: ComponentScore

    @model_validator(mode="before")
    @classmethod
    def _discard_overall(cls, data: Any) -> Any:
        # overall is derived; a supplied value (e.g. from a previous dump) is ignored
        if isinstance(data, dict) and "overall" in data:
            data = {k: v for k, v in data.items() if k != "overall"}
        return data

    def components(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in SCORE_COMPONENTS}

    @computed_field
    @property
    def overall(self) -> float:
        return overall_from_components(self.components().values())


class Reviews(CanonicalModel):
    pros: list[str] = []
    cons: list[str] = []
    management_feedback: str = ""
    noise_levels: str = ""
    overall_living: str = ""
    pet_friendliness: str = ""


class Contact(CanonicalModel):
    phone: str
    email: str
    office_hours: str = ""
    virtual_tour_url: Optional[str] = None
    schedule_tour_url: Optional[str] = None


class Media(CanonicalModel):
    hero_image: str
    gallery_images: list[str] = []
    virtual_tour_url: Optional[str] = None
    video_url: Optional[str] = None


class Seo(CanonicalModel):
    title: str
    description: str
    keywords: list[str] = []
    canonical_url: str


class BuildingRecord(CanonicalModel):
    """One property, in canonical form."""

    id: str = Field(pattern=SLUG_PATTERN)
    name: str = Field(min_length=1)
    location: Location
    overview: Overview
    pricing: Pricing = Pricing()
    floor_plans: list[FloorPlan] = []
    amenities: list[AmenityCategory] = []
    scores: Scores
    reviews: Reviews = Reviews()
    contact: Contact
    media: Media
    seo: Seo

    def to_canonical(self) -> dict[str, Any]:
        """Canonical camelCase mapping with absent optionals omitted."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
