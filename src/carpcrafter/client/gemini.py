"""Gemini REST adapter for concept and visual generation."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from carpcrafter.client.base import GenerationClient
from carpcrafter.client.prompts import (
    CONCEPT_RESPONSE_SCHEMA,
    build_concept_prompt,
    build_visual_prompt,
)
from carpcrafter.models.errors import GenerationError, VisualError
from carpcrafter.models.invention import Concept, InventionRequest, ResourceMode
from carpcrafter.settings import Settings

logger = logging.getLogger("carpcrafter.gemini")


def _parts(payload: dict[str, Any]) -> list[dict[str, Any]]:
    candidates = payload.get("candidates") or []
    if not candidates:
        return []
    content = candidates[0].get("content") or {}
    return list(content.get("parts") or [])


class GeminiClient(GenerationClient):
    """Calls ``models/{model}:generateContent`` on the Generative Language API.

    An ``httpx.AsyncClient`` may be injected (tests pass one built on
    ``httpx.MockTransport``); otherwise one is created and owned here.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        concept_model: str = "gemini-2.5-flash",
        visual_model: str = "gemini-2.5-flash-image",
        thinking_budget: int = 4096,
        timeout: float = 120.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self.concept_model = concept_model
        self.visual_model = visual_model
        self.thinking_budget = thinking_budget
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiClient:
        return cls(
            settings.gemini_api_key,
            base_url=settings.gemini_base_url,
            concept_model=settings.concept_model,
            visual_model=settings.visual_model,
            thinking_budget=settings.thinking_budget,
            timeout=settings.request_timeout,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # -- helpers -------------------------------------------------------------

    async def _generate(self, model: str, body: dict[str, Any]) -> dict[str, Any]:
        if not self._api_key:
            raise RuntimeError("API key is missing")
        response = await self._http.post(
            f"{self._base_url}/models/{model}:generateContent",
            headers={"x-goog-api-key": self._api_key},
            json=body,
        )
        response.raise_for_status()
        return response.json()  # type: ignore[no-any-return]

    # -- GenerationClient ----------------------------------------------------

    async def generate_concept(self, request: InventionRequest) -> Concept:
        body = {
            "contents": [{"parts": [{"text": build_concept_prompt(request)}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": CONCEPT_RESPONSE_SCHEMA,
                "thinkingConfig": {"thinkingBudget": self.thinking_budget},
            },
        }
        try:
            payload = await self._generate(self.concept_model, body)
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            logger.error("Error generating concept: %s", exc)
            raise GenerationError(str(exc)) from exc

        text = "".join(p.get("text", "") for p in _parts(payload) if not p.get("thought"))
        if not text:
            raise GenerationError("No text returned from Gemini")
        try:
            return Concept.model_validate_json(text)
        except ValidationError as exc:
            logger.error("Concept response did not match the schema: %s", exc)
            raise GenerationError("The AI returned a malformed invention") from exc

    async def generate_visual(self, prompt: str, resource_mode: ResourceMode) -> str:
        body = {"contents": [{"parts": [{"text": build_visual_prompt(prompt, resource_mode)}]}]}
        try:
            payload = await self._generate(self.visual_model, body)
        except (httpx.HTTPError, RuntimeError, ValueError) as exc:
            logger.error("Error generating visual: %s", exc)
            raise VisualError(str(exc)) from exc

        for part in _parts(payload):
            inline = part.get("inlineData") or {}
            if inline.get("data"):
                mime = inline.get("mimeType") or "image/png"
                return f"data:{mime};base64,{inline['data']}"
        raise VisualError("No image data found in response")
