"""Generation endpoints: start a run, poll it, abandon it."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from carpcrafter.api.deps import get_orchestrator, get_store
from carpcrafter.api.schemas import GenerationResponse
from carpcrafter.models.invention import InventionRequest
from carpcrafter.service.artifact_store import ArtifactStore
from carpcrafter.service.orchestrator import GenerationOrchestrator, GenerationState

router = APIRouter()


@router.post("", response_model=GenerationResponse, status_code=202)
async def start_generation(
    body: InventionRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),  # noqa: B008
) -> GenerationResponse:
    """Start generating an invention; returns while the concept is brainstormed."""
    handle = orchestrator.start(body)
    return GenerationResponse.from_handle(handle)


@router.get("/current", response_model=GenerationResponse)
async def current_generation(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),  # noqa: B008
    store: ArtifactStore = Depends(get_store),  # noqa: B008
) -> GenerationResponse:
    """Poll the run being tracked."""
    handle = orchestrator.current
    if handle is None:
        raise HTTPException(status_code=404, detail="No generation in progress")
    return GenerationResponse.from_handle(handle, saved=orchestrator.is_saved(store.collection))


@router.delete("/current", status_code=204)
async def reset_generation(
    confirm: bool = False,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),  # noqa: B008
    store: ArtifactStore = Depends(get_store),  # noqa: B008
) -> None:
    """Stop tracking the current run.

    A finished invention that is not in the gallery yet is only discarded
    when the client passes ``confirm=true``.
    """
    handle = orchestrator.current
    unsaved = (
        handle is not None
        and handle.state == GenerationState.COMPLETE
        and not orchestrator.is_saved(store.collection)
    )
    if unsaved and not confirm:
        raise HTTPException(
            status_code=409,
            detail="This invention hasn't been saved to your Gallery yet; "
            "pass confirm=true to discard it",
        )
    orchestrator.reset()
