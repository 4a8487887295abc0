"""API request/response Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel

from carpcrafter.models.invention import Invention
from carpcrafter.service.orchestrator import GenerationHandle, GenerationState


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = ""


class GenerationResponse(BaseModel):
    """Observable state of the current generation run."""

    run_id: int
    state: GenerationState
    invention: Invention | None = None
    error: str | None = None
    diagnostics: list[str] = []
    superseded: bool = False
    saved: bool = False

    @classmethod
    def from_handle(cls, handle: GenerationHandle, *, saved: bool = False) -> GenerationResponse:
        return cls(
            run_id=handle.run_id,
            state=handle.state,
            invention=handle.invention,
            error=handle.error.reason if handle.error else None,
            diagnostics=[d.reason for d in handle.diagnostics],
            superseded=handle.superseded,
            saved=saved,
        )


class NoticeDetail(BaseModel):
    """What the store had to give up to fit the gallery into storage."""

    code: str
    message: str


class CommitResponse(BaseModel):
    """Response for POST /inventions."""

    invention: Invention
    gallery_size: int
    notice: NoticeDetail | None = None


class GalleryResponse(BaseModel):
    """Response for GET /inventions."""

    inventions: list[Invention]


class ImportResponse(BaseModel):
    """Response for POST /inventions/import."""

    added_count: int
    gallery_size: int
    message: str
    notice: NoticeDetail | None = None
