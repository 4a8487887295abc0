"""Invention domain models: request, concept, and the stored invention record."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(UTC)


class _CamelModel(BaseModel):
    """Base for records that are stored and exchanged with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResourceMode(StrEnum):
    DIY = "diy"
    PRO = "pro"
    THREE_D_PRINT = "3dprint"
    BAIT = "bait"
    NORMAL = "normal"


class WeatherSnapshot(_CamelModel):
    """Current conditions at the swim, used to adapt the invention."""

    temperature: float  # °C
    wind_speed: float  # km/h
    pressure: float  # hPa
    condition: str


class InventionRequest(_CamelModel):
    """What the angler asked for."""

    challenge: str = Field(min_length=1)
    environment: str = ""
    resource_mode: ResourceMode = ResourceMode.PRO
    available_supplies: str | None = None
    weather: WeatherSnapshot | None = None

    @field_validator("challenge")
    @classmethod
    def _challenge_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("challenge must not be blank")
        return v


class Concept(_CamelModel):
    """Structured text payload produced by the concept-generation call."""

    name: str
    tagline: str
    description: str
    mechanism: str
    materials: list[str]
    visual_prompt: str
    feasibility_score: int = Field(ge=1, le=100)
    feasibility_analysis: str | None = None
    instructions: list[str] | None = None
    pros: list[str]
    cons: list[str]


# Flat (pre-``concept``) record keys that map onto the Concept model.
_LEGACY_CONCEPT_KEYS = tuple(to_camel(name) for name in Concept.model_fields)


class Invention(_CamelModel):
    """A generated invention as held in the gallery.

    ``visual`` is an embeddable ``data:`` URI.  Its absence is the only
    persisted representation of "no image", whether the visual call failed,
    has not resolved yet, or the image was stripped to save space.
    """

    id: str = Field(min_length=1)
    created_at: datetime = Field(default_factory=_utcnow)
    concept: Concept
    visual: str | None = None
    request_params: InventionRequest | None = None

    @model_validator(mode="before")
    @classmethod
    def _upgrade_flat_record(cls, data: Any) -> Any:
        """Fold the legacy flat layout into the nested one.

        Older saves kept the concept fields at the top level, an epoch-ms
        ``timestamp`` instead of ``createdAt``, ``imageUrl`` for the picture
        and ``originalParams`` for the request.
        """
        if not isinstance(data, dict) or "concept" in data or "name" not in data:
            return data
        upgraded: dict[str, Any] = {
            "id": data.get("id"),
            "concept": {k: data[k] for k in _LEGACY_CONCEPT_KEYS if k in data},
        }
        timestamp = data.get("timestamp")
        if isinstance(timestamp, (int, float)):
            upgraded["createdAt"] = datetime.fromtimestamp(timestamp / 1000, tz=UTC)
        elif "createdAt" in data:
            upgraded["createdAt"] = data["createdAt"]
        if data.get("imageUrl"):
            upgraded["visual"] = data["imageUrl"]
        if data.get("originalParams") is not None:
            upgraded["requestParams"] = data["originalParams"]
        return upgraded

    @property
    def has_visual(self) -> bool:
        return bool(self.visual)

    def without_visual(self) -> Invention:
        """Return a copy with the image stripped (text is kept intact)."""
        return self.model_copy(update={"visual": None})

    def to_record(self) -> dict[str, Any]:
        """JSON-ready camelCase mapping, omitting absent optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


StoredCollection = list[Invention]
