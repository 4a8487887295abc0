"""Shared test fixtures for CarpCrafter."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from carpcrafter.client.base import GenerationClient
from carpcrafter.models.invention import (
    Concept,
    Invention,
    InventionRequest,
    ResourceMode,
)
from carpcrafter.service.artifact_store import ArtifactStore
from carpcrafter.service.orchestrator import GenerationHandle, GenerationState
from carpcrafter.storage.local import InMemoryStorage

SAMPLE_CONCEPT = {
    "name": "Drift Anchor Pod",
    "tagline": "Holds the line when the wind doesn't.",
    "description": "A weighted rod pod foot that digs into soft margins.",
    "mechanism": "A spiral auger converts a twist into downward holding force.",
    "materials": ["PVC pipe", "M8 threaded rod", "Wing nuts"],
    "visualPrompt": "A matte black auger foot on a muddy lake margin at dawn",
    "feasibilityScore": 82,
    "feasibilityAnalysis": "Only needs a drill and a hacksaw.",
    "instructions": ["Cut the pipe", "Thread the rod", "Fit the wing nuts"],
    "pros": ["Cheap", "Stable in wind"],
    "cons": ["Heavy to carry"],
}

SAMPLE_VISUAL = "data:image/png;base64," + "iVBORw0KGgo" * 40


def make_concept(**overrides: object) -> Concept:
    return Concept.model_validate({**SAMPLE_CONCEPT, **overrides})


def make_invention(invention_id: str, *, visual: str | None = SAMPLE_VISUAL) -> Invention:
    return Invention(
        id=invention_id,
        created_at=datetime(2025, 6, 1, 5, 30, tzinfo=UTC),
        concept=make_concept(name=f"Invention {invention_id}"),
        visual=visual,
        request_params=InventionRequest(
            challenge="Rod pod keeps blowing over",
            environment="Windy gravel pit",
            resource_mode=ResourceMode.DIY,
        ),
    )


async def settle(handle: GenerationHandle, state: GenerationState, rounds: int = 50) -> None:
    """Yield to the loop until *handle* reaches *state*."""
    for _ in range(rounds):
        if handle.state == state:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"handle stuck in {handle.state}, expected {state}")


class FakeGenerationClient(GenerationClient):
    """Scriptable generation backend.

    With ``hold_visuals=True`` every visual call blocks on a future appended
    to ``pending_visuals`` so tests decide when (and how) it resolves.
    """

    def __init__(
        self,
        *,
        concept: Concept | None = None,
        concept_error: Exception | None = None,
        visual: str = SAMPLE_VISUAL,
        visual_error: Exception | None = None,
        hold_visuals: bool = False,
    ) -> None:
        self.concept = concept or make_concept()
        self.concept_error = concept_error
        self.visual = visual
        self.visual_error = visual_error
        self.hold_visuals = hold_visuals
        self.concept_calls: list[InventionRequest] = []
        self.visual_calls: list[tuple[str, ResourceMode]] = []
        self.pending_visuals: list[asyncio.Future[str]] = []

    async def generate_concept(self, request: InventionRequest) -> Concept:
        self.concept_calls.append(request)
        await asyncio.sleep(0)
        if self.concept_error is not None:
            raise self.concept_error
        return self.concept

    async def generate_visual(self, prompt: str, resource_mode: ResourceMode) -> str:
        self.visual_calls.append((prompt, resource_mode))
        if self.hold_visuals:
            future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self.pending_visuals.append(future)
            return await future
        await asyncio.sleep(0)
        if self.visual_error is not None:
            raise self.visual_error
        return self.visual


@pytest.fixture
def request_params() -> InventionRequest:
    return InventionRequest(
        challenge="Keeping bait fresh in hot weather",
        environment="Shallow estate lake",
        resource_mode=ResourceMode.BAIT,
    )


@pytest.fixture
def backend() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(backend: InMemoryStorage) -> ArtifactStore:
    return ArtifactStore(backend)
