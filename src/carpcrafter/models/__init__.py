"""Pydantic domain models for CarpCrafter."""

from carpcrafter.models.errors import (
    GenerationError,
    ImportFormatError,
    StorageCapacityError,
    StorageCorruptError,
    StorageNotice,
    StoreFullError,
    VisualError,
)
from carpcrafter.models.invention import (
    Concept,
    Invention,
    InventionRequest,
    ResourceMode,
    StoredCollection,
    WeatherSnapshot,
)

__all__ = [
    "Concept",
    "GenerationError",
    "ImportFormatError",
    "Invention",
    "InventionRequest",
    "ResourceMode",
    "StorageCapacityError",
    "StorageCorruptError",
    "StorageNotice",
    "StoreFullError",
    "StoredCollection",
    "VisualError",
    "WeatherSnapshot",
]
