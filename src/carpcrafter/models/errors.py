"""Error taxonomy and caller-facing notices."""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from carpcrafter.models.invention import Invention


class GenerationError(Exception):
    """The concept call failed; the run produces no invention."""


class VisualError(Exception):
    """The visual call failed; the invention stays text-only."""


class StorageCapacityError(Exception):
    """The backend refused a write because it would exceed its quota."""

    def __init__(self, needed: int, quota: int) -> None:
        super().__init__(f"Storage quota exceeded: {needed} bytes needed, quota is {quota}")
        self.needed = needed
        self.quota = quota


class StorageCorruptError(Exception):
    """Persisted data could not be decoded into a collection."""


class StoreFullError(Exception):
    """Every degradation stage failed; nothing was persisted.

    ``collection`` is the collection the caller asked to persist, so the
    caller can still show it for the rest of the session.
    """

    def __init__(self, collection: list[Invention]) -> None:
        super().__init__(StorageNotice.STORE_FULL.message)
        self.collection = collection


class ImportFormatError(ValueError):
    """A backup snapshot is not a list of invention records."""


class StorageNotice(StrEnum):
    """What a commit had to give up to fit into storage."""

    NEWEST_VISUAL_DROPPED = "newest_visual_dropped"
    ALL_VISUALS_DROPPED = "all_visuals_dropped"
    STORE_FULL = "store_full"

    @property
    def message(self) -> str:
        return _NOTICE_MESSAGES[self]


_NOTICE_MESSAGES = {
    StorageNotice.NEWEST_VISUAL_DROPPED: (
        "Storage limit reached: this invention was saved as text only to save space. "
        "Export a backup to keep your full data."
    ),
    StorageNotice.ALL_VISUALS_DROPPED: (
        "Storage critical: all images have been removed from local storage to preserve "
        "your invention data. Please export a backup."
    ),
    StorageNotice.STORE_FULL: (
        "Storage full: cannot save new data. Delete old inventions or export and clear "
        "your gallery."
    ),
}
