"""Dependency injection for FastAPI: gallery store and orchestrator singletons."""

from __future__ import annotations

from carpcrafter.service.artifact_store import ArtifactStore
from carpcrafter.service.orchestrator import GenerationOrchestrator

_store: ArtifactStore | None = None
_orchestrator: GenerationOrchestrator | None = None


def init_services(store: ArtifactStore, orchestrator: GenerationOrchestrator) -> None:
    """Set the global store and orchestrator (called at app startup)."""
    global _store, _orchestrator  # noqa: PLW0603
    _store = store
    _orchestrator = orchestrator


def get_store() -> ArtifactStore:
    """FastAPI ``Depends`` provider for the gallery store."""
    if _store is None:
        raise RuntimeError("ArtifactStore not initialised; call init_services() first")
    return _store


def get_orchestrator() -> GenerationOrchestrator:
    """FastAPI ``Depends`` provider for the generation orchestrator."""
    if _orchestrator is None:
        raise RuntimeError("GenerationOrchestrator not initialised; call init_services() first")
    return _orchestrator


def reset_services() -> None:
    """Clear the globals (for tests)."""
    global _store, _orchestrator  # noqa: PLW0603
    _store = None
    _orchestrator = None
