"""Reconcile an imported backup with the current gallery by invention id."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from carpcrafter.models.errors import ImportFormatError
from carpcrafter.models.invention import Invention


@dataclass
class MergeResult:
    """Deduplicated union of imported and existing inventions."""

    merged: list[Invention]
    added_count: int


def _candidate_id(record: Mapping[str, Any]) -> str | None:
    value = record.get("id")
    if isinstance(value, str) and value.strip():
        return value
    return None


def merge(incoming: Any, existing: Sequence[Invention]) -> MergeResult:
    """Prepend imported inventions whose ids are not already in *existing*.

    Existing records win over imported duplicates.  Candidates without a
    usable ``id`` are skipped.  Anything that is not a list of mappings, or
    an identified record that does not validate as an invention, rejects the
    whole import with :class:`ImportFormatError`.
    """
    if not isinstance(incoming, list):
        raise ImportFormatError("Invalid backup file format: expected a list of inventions")
    if not all(isinstance(item, Mapping) for item in incoming):
        raise ImportFormatError("Invalid backup file format: every entry must be an object")

    seen = {inv.id for inv in existing}
    accepted: list[Invention] = []
    for index, record in enumerate(incoming):
        inv_id = _candidate_id(record)
        if inv_id is None or inv_id in seen:
            continue
        try:
            invention = Invention.model_validate(dict(record))
        except ValidationError as exc:
            raise ImportFormatError(
                f"Invalid invention at position {index} (id '{inv_id}'): "
                f"{exc.error_count()} validation error(s)"
            ) from exc
        seen.add(inv_id)
        accepted.append(invention)

    return MergeResult(merged=[*accepted, *existing], added_count=len(accepted))
