"""Quota-aware gallery store: durable, degradable persistence of inventions."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

from pydantic import ValidationError

from carpcrafter.models.errors import (
    ImportFormatError,
    StorageCapacityError,
    StorageCorruptError,
    StorageNotice,
    StoreFullError,
)
from carpcrafter.models.invention import Invention
from carpcrafter.service.import_merger import merge
from carpcrafter.storage.repository import KeyValueStorage

logger = logging.getLogger("carpcrafter.store")

DEFAULT_STORAGE_KEY = "carp_crafter_inventions"

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class CommitResult:
    """What was actually persisted.

    ``collection`` may differ from what was requested when a degradation
    stage stripped images; ``notice`` says which stage did.  ``written`` is
    ``False`` when the commit was a no-op (duplicate id).
    """

    collection: list[Invention]
    notice: StorageNotice | None = None
    written: bool = True


@dataclass
class ImportResult:
    """Outcome of importing a backup snapshot."""

    collection: list[Invention]
    added_count: int
    notice: StorageNotice | None = None


# ---------------------------------------------------------------------------
# Degradation cascade
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DegradationStage:
    """One lossy fallback.  ``apply`` returns ``None`` when it changes nothing."""

    notice: StorageNotice
    apply: Callable[[list[Invention]], list[Invention] | None]


def strip_newest_visual(collection: list[Invention]) -> list[Invention] | None:
    if not collection or not collection[0].has_visual:
        return None
    return [collection[0].without_visual(), *collection[1:]]


def strip_all_visuals(collection: list[Invention]) -> list[Invention] | None:
    if not any(inv.has_visual for inv in collection):
        return None
    return [inv.without_visual() if inv.has_visual else inv for inv in collection]


DEGRADATION_STAGES: tuple[DegradationStage, ...] = (
    DegradationStage(StorageNotice.NEWEST_VISUAL_DROPPED, strip_newest_visual),
    DegradationStage(StorageNotice.ALL_VISUALS_DROPPED, strip_all_visuals),
)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def encode_collection(collection: Sequence[Invention], *, indent: int | None = None) -> str:
    records = [inv.to_record() for inv in collection]
    if indent is None:
        return json.dumps(records, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(records, ensure_ascii=False, indent=indent)


def decode_collection(raw: str) -> list[Invention]:
    """Decode a persisted collection record by record.

    Records that no longer validate are logged and skipped so the rest of
    the gallery survives.  Raises :class:`StorageCorruptError` when *raw*
    is not a JSON array at all.
    """
    try:
        records = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StorageCorruptError(f"Stored gallery is not valid JSON: {exc}") from exc
    if not isinstance(records, list):
        raise StorageCorruptError("Stored gallery is not a list of inventions")

    collection: list[Invention] = []
    for index, record in enumerate(records):
        try:
            collection.append(Invention.model_validate(record))
        except ValidationError as exc:
            logger.warning(
                "Skipping unreadable stored invention at position %d: %d error(s)",
                index,
                exc.error_count(),
            )
    return collection


def snapshot_filename(today: date | None = None) -> str:
    """Download name for an exported backup."""
    today = today or date.today()
    return f"CarpCrafter_Backup_{today.isoformat()}.json"


# ---------------------------------------------------------------------------
# ArtifactStore
# ---------------------------------------------------------------------------


class ArtifactStore:
    """Owns the invention gallery and its single durable record.

    All mutation goes through :meth:`commit`, :meth:`remove` and
    :meth:`replace`.  Observers get copies of the collection, never the
    store's own list.  Not thread-safe; one thread of control is assumed.
    """

    def __init__(
        self,
        backend: KeyValueStorage,
        key: str = DEFAULT_STORAGE_KEY,
        stages: Sequence[DegradationStage] = DEGRADATION_STAGES,
    ) -> None:
        self._backend = backend
        self._key = key
        self._stages = tuple(stages)
        self._collection: list[Invention] | None = None

    # -- helpers -------------------------------------------------------------

    def _current(self) -> list[Invention]:
        if self._collection is None:
            self._collection = self.load()
        return self._collection

    def _write(self, collection: list[Invention]) -> None:
        self._backend.write(self._key, encode_collection(collection))

    def _persist(self, collection: list[Invention]) -> CommitResult:
        """Write *collection*, degrading images stage by stage on quota errors."""
        try:
            self._write(collection)
        except StorageCapacityError as exc:
            logger.warning("Gallery write refused (%s); trying text-only fallbacks", exc)
        else:
            self._collection = collection
            return CommitResult(collection=list(collection))

        for stage in self._stages:
            degraded = stage.apply(collection)
            if degraded is None:
                continue
            try:
                self._write(degraded)
            except StorageCapacityError:
                logger.warning("Degradation stage '%s' still over quota", stage.notice)
                continue
            logger.warning("Gallery saved after degradation stage '%s'", stage.notice)
            self._collection = degraded
            return CommitResult(collection=list(degraded), notice=stage.notice)

        logger.error("Gallery storage full: %d inventions not persisted", len(collection))
        raise StoreFullError(list(collection))

    # -- public API ----------------------------------------------------------

    @property
    def collection(self) -> list[Invention]:
        """Snapshot of the committed gallery, newest first."""
        return list(self._current())

    def load(self) -> list[Invention]:
        """Read the gallery from storage.  Missing or corrupt data yields ``[]``."""
        collection: list[Invention] = []
        try:
            raw = self._backend.read(self._key)
            if raw is not None:
                collection = decode_collection(raw)
        except StorageCorruptError as exc:
            logger.error("Failed to parse saved inventions, starting empty: %s", exc)
            collection = []
        self._collection = collection
        return list(collection)

    def get(self, invention_id: str) -> Invention | None:
        return next((inv for inv in self._current() if inv.id == invention_id), None)

    def contains(self, invention_id: str) -> bool:
        return self.get(invention_id) is not None

    def commit(self, invention: Invention) -> CommitResult:
        """Insert *invention* at the front and persist.

        A duplicate id is a no-op.  Raises :class:`StoreFullError` if even
        the text-only fallbacks do not fit.
        """
        current = self._current()
        if any(inv.id == invention.id for inv in current):
            return CommitResult(collection=list(current), written=False)
        return self._persist([invention, *current])

    def replace(self, collection: Sequence[Invention]) -> CommitResult:
        """Persist a whole collection through the degradation path."""
        return self._persist(list(collection))

    def remove(self, invention_id: str) -> list[Invention]:
        """Delete an invention.  Unknown ids are ignored.

        Callers are expected to have confirmed the deletion with the user.
        """
        current = self._current()
        remaining = [inv for inv in current if inv.id != invention_id]
        if len(remaining) != len(current):
            self._write(remaining)
            self._collection = remaining
        return list(remaining)

    def export_snapshot(self) -> str:
        """Serialise the full gallery as a pretty-printed JSON backup."""
        return encode_collection(self._current(), indent=2)

    def import_snapshot(self, text: str | bytes) -> ImportResult:
        """Merge a JSON backup into the gallery.

        Raises :class:`ImportFormatError` for unparseable or malformed
        snapshots (the gallery is left untouched) and
        :class:`StoreFullError` if the merged gallery cannot be stored.
        """
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ImportFormatError(f"Failed to parse backup file: {exc}") from exc

        result = merge(data, self._current())
        if result.added_count == 0:
            return ImportResult(collection=self.collection, added_count=0)
        persisted = self.replace(result.merged)
        logger.info("Imported %d inventions from backup", result.added_count)
        return ImportResult(
            collection=persisted.collection,
            added_count=result.added_count,
            notice=persisted.notice,
        )
