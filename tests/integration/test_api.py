"""Integration tests for the FastAPI REST API."""

from __future__ import annotations

import json

import pytest
from httpx import ASGITransport, AsyncClient

from carpcrafter.api.app import create_app
from carpcrafter.api.deps import init_services, reset_services
from carpcrafter.models.errors import VisualError
from carpcrafter.models.invention import Invention
from carpcrafter.service.artifact_store import ArtifactStore, encode_collection
from carpcrafter.service.orchestrator import GenerationOrchestrator
from carpcrafter.settings import Settings
from carpcrafter.storage.local import InMemoryStorage
from tests.conftest import SAMPLE_VISUAL, FakeGenerationClient, make_invention

CHALLENGE = {"challenge": "Rig tangles on the cast", "resourceMode": "diy"}


@pytest.fixture
def fake_client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def orchestrator(fake_client: FakeGenerationClient) -> GenerationOrchestrator:
    return GenerationOrchestrator(fake_client)


@pytest.fixture
def app(store: ArtifactStore, orchestrator: GenerationOrchestrator):
    app = create_app(settings=Settings())
    # ASGITransport doesn't trigger lifespan, so wire services by hand.
    init_services(store, orchestrator)
    yield app
    reset_services()


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _generate(
    client: AsyncClient, orchestrator: GenerationOrchestrator
) -> dict:  # type: ignore[type-arg]
    response = await client.post("/generations", json=CHALLENGE)
    assert response.status_code == 202
    await orchestrator.drain()
    return (await client.get("/generations/current")).json()


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert "X-Request-Duration-Ms" in response.headers
        assert response.headers["X-Content-Type-Options"] == "nosniff"


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class TestGeneration:
    async def test_start_returns_immediately(self, client: AsyncClient) -> None:
        response = await client.post("/generations", json=CHALLENGE)
        assert response.status_code == 202
        data = response.json()
        assert data["state"] == "brainstorming"
        assert data["invention"] is None

    async def test_poll_until_complete(
        self, client: AsyncClient, orchestrator: GenerationOrchestrator
    ) -> None:
        data = await _generate(client, orchestrator)
        assert data["state"] == "complete"
        assert data["invention"]["visual"] == SAMPLE_VISUAL
        assert data["invention"]["requestParams"]["resourceMode"] == "diy"
        assert data["saved"] is False

    async def test_visual_failure_reported_as_diagnostic(
        self,
        client: AsyncClient,
        orchestrator: GenerationOrchestrator,
        fake_client: FakeGenerationClient,
    ) -> None:
        fake_client.visual_error = VisualError("image model overloaded")
        data = await _generate(client, orchestrator)
        assert data["state"] == "complete"
        assert "visual" not in data["invention"] or data["invention"]["visual"] is None
        assert data["diagnostics"] == ["image model overloaded"]

    async def test_blank_challenge_rejected(self, client: AsyncClient) -> None:
        response = await client.post("/generations", json={"challenge": ""})
        assert response.status_code == 422

    async def test_no_current_generation(self, client: AsyncClient) -> None:
        response = await client.get("/generations/current")
        assert response.status_code == 404

    async def test_reset_unsaved_needs_confirmation(
        self, client: AsyncClient, orchestrator: GenerationOrchestrator
    ) -> None:
        generated = await _generate(client, orchestrator)
        response = await client.delete("/generations/current")
        assert response.status_code == 409
        assert "hasn't been saved" in response.json()["detail"]
        current = (await client.get("/generations/current")).json()
        assert current["invention"]["id"] == generated["invention"]["id"]

        response = await client.delete("/generations/current", params={"confirm": "true"})
        assert response.status_code == 204
        assert (await client.get("/generations/current")).status_code == 404

    async def test_reset_saved_needs_no_confirmation(
        self, client: AsyncClient, orchestrator: GenerationOrchestrator
    ) -> None:
        await _generate(client, orchestrator)
        assert (await client.post("/inventions")).status_code == 201
        response = await client.delete("/generations/current")
        assert response.status_code == 204
        assert (await client.get("/generations/current")).status_code == 404

    async def test_reset_without_run(self, client: AsyncClient) -> None:
        assert (await client.delete("/generations/current")).status_code == 204


# ---------------------------------------------------------------------------
# Gallery
# ---------------------------------------------------------------------------


class TestSave:
    async def test_save_current(
        self, client: AsyncClient, orchestrator: GenerationOrchestrator
    ) -> None:
        generated = await _generate(client, orchestrator)
        response = await client.post("/inventions")
        assert response.status_code == 201
        data = response.json()
        assert data["invention"]["id"] == generated["invention"]["id"]
        assert data["gallery_size"] == 1
        assert data["notice"] is None

        current = (await client.get("/generations/current")).json()
        assert current["saved"] is True
        listing = (await client.get("/inventions")).json()
        assert [inv["id"] for inv in listing["inventions"]] == [generated["invention"]["id"]]

    async def test_save_twice_is_idempotent(
        self, client: AsyncClient, orchestrator: GenerationOrchestrator
    ) -> None:
        await _generate(client, orchestrator)
        await client.post("/inventions")
        response = await client.post("/inventions")
        assert response.status_code == 201
        assert response.json()["gallery_size"] == 1

    async def test_nothing_to_save(self, client: AsyncClient) -> None:
        response = await client.post("/inventions")
        assert response.status_code == 409

    async def test_save_degrades_and_updates_current_view(
        self,
        client: AsyncClient,
        orchestrator: GenerationOrchestrator,
        backend: InMemoryStorage,
    ) -> None:
        generated = await _generate(client, orchestrator)
        text_only = Invention.model_validate(generated["invention"]).without_visual()
        backend.quota_bytes = len(encode_collection([text_only]).encode("utf-8"))

        response = await client.post("/inventions")

        assert response.status_code == 201
        data = response.json()
        assert data["notice"]["code"] == "newest_visual_dropped"
        assert "text only" in data["notice"]["message"]
        assert "visual" not in data["invention"] or data["invention"]["visual"] is None
        current = (await client.get("/generations/current")).json()
        assert current["invention"]["visual"] is None

    async def test_store_full(
        self,
        client: AsyncClient,
        orchestrator: GenerationOrchestrator,
        backend: InMemoryStorage,
    ) -> None:
        await _generate(client, orchestrator)
        backend.quota_bytes = 10
        response = await client.post("/inventions")
        assert response.status_code == 507
        assert response.json()["detail"]["code"] == "store_full"
        assert (await client.get("/inventions")).json()["inventions"] == []


class TestGalleryItems:
    async def test_get_invention(self, client: AsyncClient, store: ArtifactStore) -> None:
        store.commit(make_invention("1"))
        response = await client.get("/inventions/1")
        assert response.status_code == 200
        assert response.json()["concept"]["name"] == "Invention 1"
        assert (await client.get("/inventions/2")).status_code == 404

    async def test_delete_requires_confirmation(
        self, client: AsyncClient, store: ArtifactStore
    ) -> None:
        store.commit(make_invention("1"))
        response = await client.delete("/inventions/1")
        assert response.status_code == 400
        assert store.contains("1")

    async def test_delete(
        self, client: AsyncClient, store: ArtifactStore, backend: InMemoryStorage
    ) -> None:
        store.commit(make_invention("1"))
        response = await client.delete("/inventions/1", params={"confirm": "true"})
        assert response.status_code == 204
        assert ArtifactStore(backend).load() == []

    async def test_delete_unknown(self, client: AsyncClient) -> None:
        response = await client.delete("/inventions/nope", params={"confirm": "true"})
        assert response.status_code == 404


class TestBackups:
    async def test_export(self, client: AsyncClient, store: ArtifactStore) -> None:
        store.commit(make_invention("1"))
        response = await client.get("/inventions/export")
        assert response.status_code == 200
        assert "CarpCrafter_Backup_" in response.headers["content-disposition"]
        assert [r["id"] for r in response.json()] == ["1"]

    async def test_import(self, client: AsyncClient, store: ArtifactStore) -> None:
        store.commit(make_invention("2"))
        store.commit(make_invention("1"))
        snapshot = [make_invention("2").to_record(), make_invention("3").to_record()]

        response = await client.post("/inventions/import", content=json.dumps(snapshot))

        assert response.status_code == 200
        data = response.json()
        assert data["added_count"] == 1
        assert data["gallery_size"] == 3
        assert data["message"] == "Import successful! Added 1 inventions."
        listing = (await client.get("/inventions")).json()["inventions"]
        assert [inv["id"] for inv in listing] == ["3", "1", "2"]

    async def test_import_rejects_non_list(self, client: AsyncClient) -> None:
        response = await client.post("/inventions/import", content=b'{"id": "1"}')
        assert response.status_code == 422
        assert "expected a list" in response.json()["detail"]

    async def test_import_rejects_garbage(self, client: AsyncClient) -> None:
        response = await client.post("/inventions/import", content=b"not json at all")
        assert response.status_code == 422
        assert "Failed to parse" in response.json()["detail"]


class TestWeatherEndpoint:
    async def test_weather(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
        from carpcrafter.api.routers import weather as weather_router
        from carpcrafter.models.invention import WeatherSnapshot

        async def fake_fetch(latitude: float, longitude: float, **_: object) -> WeatherSnapshot:
            return WeatherSnapshot(
                temperature=9.0, wind_speed=25.0, pressure=1001.0, condition="Showers"
            )

        monkeypatch.setattr(weather_router, "fetch_weather", fake_fetch)
        response = await client.get("/weather", params={"latitude": 52.1, "longitude": 0.3})
        assert response.status_code == 200
        assert response.json() == {
            "temperature": 9.0,
            "windSpeed": 25.0,
            "pressure": 1001.0,
            "condition": "Showers",
        }

    async def test_weather_rejects_bad_coordinates(self, client: AsyncClient) -> None:
        response = await client.get("/weather", params={"latitude": 123, "longitude": 0})
        assert response.status_code == 422

    @pytest.mark.parametrize(
        "error", [KeyError("current"), ValueError("Expecting value"), TypeError("NoneType")]
    )
    async def test_malformed_upstream_response_is_bad_gateway(
        self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch, error: Exception
    ) -> None:
        from carpcrafter.api.routers import weather as weather_router

        async def broken_fetch(latitude: float, longitude: float, **_: object) -> None:
            raise error

        monkeypatch.setattr(weather_router, "fetch_weather", broken_fetch)
        response = await client.get("/weather", params={"latitude": 52.1, "longitude": 0.3})
        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to fetch weather data"
