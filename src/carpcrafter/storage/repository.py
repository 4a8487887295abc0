"""Abstract storage interface for persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStorage(ABC):
    """String values under string keys, with a total byte quota.

    ``write`` raises :class:`~carpcrafter.models.errors.StorageCapacityError`
    when the value would not fit, and must leave the previous value intact
    in that case.  ``read`` raises
    :class:`~carpcrafter.models.errors.StorageCorruptError` when the stored
    bytes cannot be decoded.
    """

    @abstractmethod
    def read(self, key: str) -> str | None: ...

    @abstractmethod
    def write(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def usage(self) -> int:
        """Bytes currently in use across all keys."""
