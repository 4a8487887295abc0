"""Abstract interface of the generative backend."""

from __future__ import annotations

from abc import ABC, abstractmethod

from carpcrafter.models.invention import Concept, InventionRequest, ResourceMode


class GenerationClient(ABC):
    """Black-box generation backend used by the orchestrator.

    Implementations raise :class:`~carpcrafter.models.errors.GenerationError`
    from :meth:`generate_concept` and
    :class:`~carpcrafter.models.errors.VisualError` from
    :meth:`generate_visual`.
    """

    @abstractmethod
    async def generate_concept(self, request: InventionRequest) -> Concept: ...

    @abstractmethod
    async def generate_visual(self, prompt: str, resource_mode: ResourceMode) -> str:
        """Return the image as an embeddable ``data:`` URI."""
