"""Two-phase invention generation: concept first, then an independent visual."""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from carpcrafter.client.base import GenerationClient
from carpcrafter.models.invention import Invention, InventionRequest

logger = logging.getLogger("carpcrafter.orchestrator")


class GenerationState(StrEnum):
    IDLE = "idle"
    BRAINSTORMING = "brainstorming"  # concept (text) call in flight
    VISUALIZING = "visualizing"  # visual (image) call in flight
    COMPLETE = "complete"
    ERROR = "error"


_TERMINAL = frozenset({GenerationState.COMPLETE, GenerationState.ERROR})


@dataclass(frozen=True)
class ConceptGenerationFailed:
    """Fatal: the run ended without an invention."""

    reason: str


@dataclass(frozen=True)
class VisualGenerationFailed:
    """Non-fatal diagnostic: the invention stays text-only."""

    reason: str


Observer = Callable[["GenerationHandle"], None]


class GenerationHandle:
    """Observable progress of one generation run.

    ``run_id`` is the token the orchestrator compares when a result
    resolves; results for a run that is no longer current are dropped.
    """

    def __init__(self, run_id: int, request: InventionRequest) -> None:
        self.run_id = run_id
        self.request = request
        self.state = GenerationState.IDLE
        self.invention: Invention | None = None
        self.error: ConceptGenerationFailed | None = None
        self.diagnostics: list[VisualGenerationFailed] = []
        self.superseded = False
        self._observers: list[Observer] = []
        self._settled = asyncio.Event()

    @property
    def is_terminal(self) -> bool:
        return self.state in _TERMINAL

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Call *observer* with this handle on every change.  Returns an unsubscriber."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    async def wait(self) -> GenerationHandle:
        """Wait until the run is terminal or has been superseded."""
        await self._settled.wait()
        return self

    # -- driven by GenerationOrchestrator ----------------------------------

    def notify(self) -> None:
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception:
                logger.exception("Observer of run %d failed", self.run_id)

    def advance(self, state: GenerationState) -> None:
        self.state = state
        if state in _TERMINAL:
            self._settled.set()
        self.notify()

    def mark_superseded(self) -> None:
        if self.is_terminal:
            return
        self.superseded = True
        self._settled.set()
        self.notify()


class GenerationOrchestrator:
    """Drives concept → visual generation and tracks the current run.

    Only the newest run is current.  Starting another run (or calling
    :meth:`reset`) does not cancel in-flight calls; their results are
    discarded when they arrive.  The orchestrator never touches the
    gallery: committing is the caller's job.
    """

    def __init__(
        self,
        client: GenerationClient,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._clock = clock
        self._current: GenerationHandle | None = None
        self._run_ids = itertools.count(1)
        self._last_id_ms = 0
        self._tasks: set[asyncio.Task[None]] = set()

    # -- helpers -------------------------------------------------------------

    def _new_identity(self) -> tuple[str, datetime]:
        """Creation-time id (epoch ms), bumped so it never repeats."""
        ms = int(self._clock() * 1000)
        if ms <= self._last_id_ms:
            ms = self._last_id_ms + 1
        self._last_id_ms = ms
        return str(ms), datetime.fromtimestamp(ms / 1000, tz=UTC)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_current(self, handle: GenerationHandle) -> bool:
        return self._current is not None and self._current.run_id == handle.run_id

    async def _run_concept(self, handle: GenerationHandle) -> None:
        try:
            concept = await self._client.generate_concept(handle.request)
        except Exception as exc:
            if not self._is_current(handle):
                logger.info("Dropping concept failure of superseded run %d", handle.run_id)
                return
            logger.error("Concept generation failed for run %d: %s", handle.run_id, exc)
            handle.error = ConceptGenerationFailed(
                str(exc) or "Something went wrong during the invention process."
            )
            handle.advance(GenerationState.ERROR)
            return

        if not self._is_current(handle):
            logger.info("Dropping concept of superseded run %d", handle.run_id)
            return

        invention_id, created_at = self._new_identity()
        handle.invention = Invention(
            id=invention_id,
            created_at=created_at,
            concept=concept,
            request_params=handle.request,
        )
        handle.advance(GenerationState.VISUALIZING)
        self._spawn(self._run_visual(handle, handle.invention))

    async def _run_visual(self, handle: GenerationHandle, invention: Invention) -> None:
        visual: str | None = None
        failure: VisualGenerationFailed | None = None
        try:
            visual = await self._client.generate_visual(
                invention.concept.visual_prompt, handle.request.resource_mode
            )
        except Exception as exc:
            logger.warning("Image generation failed for invention %s: %s", invention.id, exc)
            failure = VisualGenerationFailed(str(exc) or "Image generation failed")

        current = handle.invention
        if not self._is_current(handle) or current is None or current.id != invention.id:
            logger.info("Dropping visual of superseded invention %s", invention.id)
            return

        if visual:
            handle.invention = current.model_copy(update={"visual": visual})
        if failure is not None:
            handle.diagnostics.append(failure)
        handle.advance(GenerationState.COMPLETE)

    # -- public API ----------------------------------------------------------

    @property
    def current(self) -> GenerationHandle | None:
        return self._current

    @property
    def state(self) -> GenerationState:
        return self._current.state if self._current is not None else GenerationState.IDLE

    def start(self, request: InventionRequest | dict[str, Any]) -> GenerationHandle:
        """Begin a run and return its handle immediately.

        Must be called with a running event loop.  Raises ``ValueError``
        (pydantic ``ValidationError``) for a request without a challenge.
        """
        if not isinstance(request, InventionRequest):
            request = InventionRequest.model_validate(request)

        previous = self._current
        handle = GenerationHandle(next(self._run_ids), request)
        self._current = handle
        if previous is not None:
            previous.mark_superseded()

        logger.info("Starting run %d (mode=%s)", handle.run_id, request.resource_mode)
        handle.advance(GenerationState.BRAINSTORMING)
        self._spawn(self._run_concept(handle))
        return handle

    def reset(self) -> None:
        """Stop tracking the current run; late results will be dropped."""
        previous, self._current = self._current, None
        if previous is not None:
            previous.mark_superseded()

    def is_saved(self, collection: Sequence[Invention]) -> bool:
        """Whether the current invention is already in *collection*."""
        handle = self._current
        if handle is None or handle.invention is None:
            return False
        return any(inv.id == handle.invention.id for inv in collection)

    def reconcile(self, collection: Sequence[Invention]) -> bool:
        """Adopt the persisted copy of the current invention if it lost its image.

        Returns ``True`` when the in-memory invention was replaced.
        """
        handle = self._current
        if handle is None or handle.invention is None or not handle.invention.has_visual:
            return False
        persisted = next((inv for inv in collection if inv.id == handle.invention.id), None)
        if persisted is None or persisted.has_visual:
            return False
        handle.invention = persisted
        handle.notify()
        return True

    async def drain(self) -> None:
        """Wait for every in-flight call, including superseded ones."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
