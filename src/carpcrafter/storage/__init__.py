"""Durable key-value backends for the invention gallery."""

from carpcrafter.storage.local import FileStorage, InMemoryStorage
from carpcrafter.storage.repository import KeyValueStorage

__all__ = ["FileStorage", "InMemoryStorage", "KeyValueStorage"]
