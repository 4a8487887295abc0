"""Gallery endpoints: save, list, delete, export and import inventions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from carpcrafter.api.deps import get_orchestrator, get_store
from carpcrafter.api.schemas import (
    CommitResponse,
    GalleryResponse,
    ImportResponse,
    NoticeDetail,
)
from carpcrafter.models.errors import ImportFormatError, StorageNotice, StoreFullError
from carpcrafter.models.invention import Invention
from carpcrafter.service.artifact_store import ArtifactStore, snapshot_filename
from carpcrafter.service.orchestrator import GenerationOrchestrator

router = APIRouter()


# -- helpers -----------------------------------------------------------------


def _notice(notice: StorageNotice | None) -> NoticeDetail | None:
    if notice is None:
        return None
    return NoticeDetail(code=notice.value, message=notice.message)


def _store_full() -> HTTPException:
    return HTTPException(
        status_code=507,
        detail={
            "code": StorageNotice.STORE_FULL.value,
            "message": StorageNotice.STORE_FULL.message,
        },
    )


# -- gallery -----------------------------------------------------------------


@router.get("", response_model=GalleryResponse)
async def list_inventions(
    store: ArtifactStore = Depends(get_store),  # noqa: B008
) -> GalleryResponse:
    """List saved inventions, newest first."""
    return GalleryResponse(inventions=store.collection)


@router.post("", response_model=CommitResponse, status_code=201)
async def save_current_invention(
    store: ArtifactStore = Depends(get_store),  # noqa: B008
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),  # noqa: B008
) -> CommitResponse:
    """Save the invention of the current run to the gallery."""
    handle = orchestrator.current
    if handle is None or handle.invention is None:
        raise HTTPException(status_code=409, detail="No invention ready to save")
    try:
        result = store.commit(handle.invention)
    except StoreFullError:
        raise _store_full() from None
    orchestrator.reconcile(result.collection)
    saved = next(inv for inv in result.collection if inv.id == handle.invention.id)
    return CommitResponse(
        invention=saved,
        gallery_size=len(result.collection),
        notice=_notice(result.notice),
    )


@router.get("/export")
async def export_inventions(
    store: ArtifactStore = Depends(get_store),  # noqa: B008
) -> Response:
    """Download the whole gallery as a JSON backup."""
    return Response(
        content=store.export_snapshot(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{snapshot_filename()}"'},
    )


@router.post("/import", response_model=ImportResponse)
async def import_inventions(
    request: Request,
    store: ArtifactStore = Depends(get_store),  # noqa: B008
) -> ImportResponse:
    """Merge an uploaded JSON backup into the gallery."""
    body = await request.body()
    try:
        result = store.import_snapshot(body)
    except ImportFormatError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from None
    except StoreFullError:
        raise _store_full() from None
    return ImportResponse(
        added_count=result.added_count,
        gallery_size=len(result.collection),
        message=f"Import successful! Added {result.added_count} inventions.",
        notice=_notice(result.notice),
    )


@router.get("/{invention_id}", response_model=Invention)
async def get_invention(
    invention_id: str,
    store: ArtifactStore = Depends(get_store),  # noqa: B008
) -> Invention:
    """Fetch one saved invention."""
    invention = store.get(invention_id)
    if invention is None:
        raise HTTPException(status_code=404, detail=f"Invention '{invention_id}' not found")
    return invention


@router.delete("/{invention_id}", status_code=204)
async def delete_invention(
    invention_id: str,
    confirm: bool = False,
    store: ArtifactStore = Depends(get_store),  # noqa: B008
) -> None:
    """Delete an invention.  The client must pass ``confirm=true``; this cannot be undone."""
    if not confirm:
        raise HTTPException(status_code=400, detail="Deletion must be confirmed (confirm=true)")
    if not store.contains(invention_id):
        raise HTTPException(status_code=404, detail=f"Invention '{invention_id}' not found")
    store.remove(invention_id)
