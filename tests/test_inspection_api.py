"""
Tests for the inspection API.
"""
import httpx
import pytest
import pytest_asyncio

from xcast_simulator.core_application.application import ApplicationState
from xcast_simulator.core_application.application_registry import ApplicationRegistry
from xcast_simulator.core_application.request_router import RequestRouter
from xcast_simulator.user_interaction.inspection_api import create_inspection_app


@pytest_asyncio.fixture
async def client(immediate_registry):
    router = RequestRouter(immediate_registry, "bumshakalaka.")
    app = create_inspection_app(immediate_registry, request_router=router)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestInspectionAPI:

    @pytest.mark.asyncio
    async def test_health(self, client, immediate_registry):
        immediate_registry.get_or_create("Netflix")

        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["applications"] == 1
        assert body["simulate_latency"] is False
        assert body["connection"] is None
        assert body["router"] == {"routed": 0, "ignored": 0, "dropped": 0}

    @pytest.mark.asyncio
    async def test_list_and_get_applications(self, client, immediate_registry):
        await immediate_registry.get_or_create("Netflix", "1").launch()

        listing = await client.get("/api/applications")
        single = await client.get("/api/applications/Netflix")

        assert listing.status_code == 200
        assert [entry["applicationName"] for entry in listing.json()] == ["Netflix"]
        assert single.json()["state"] == "running"
        assert single.json()["notificationSequence"] == 1

    @pytest.mark.asyncio
    async def test_get_unknown_application(self, client):
        response = await client.get("/api/applications/Unknown")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_force_state(self, client, immediate_registry, notifier):
        response = await client.post("/api/applications/YouTube/force", json={"state": "hidden"})

        assert response.status_code == 200
        assert response.json()["state"] == "hidden"
        assert immediate_registry.get("YouTube").state == ApplicationState.HIDDEN
        assert notifier.states == ["hidden"]

    @pytest.mark.asyncio
    async def test_force_state_without_notification(self, client, notifier):
        response = await client.post(
            "/api/applications/YouTube/force", json={"state": "running", "notify": False}
        )

        assert response.status_code == 200
        assert notifier.messages == []

    @pytest.mark.asyncio
    async def test_force_rejects_unknown_state(self, client):
        response = await client.post("/api/applications/YouTube/force", json={"state": "paused"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_wait_for_state(self, client, immediate_registry):
        await immediate_registry.get_or_create("Netflix").launch()

        reached = await client.get("/api/applications/Netflix/wait", params={"state": "running", "timeout_ms": 100})
        missed = await client.get("/api/applications/Netflix/wait", params={"state": "hidden", "timeout_ms": 20})

        assert reached.json() == {"applicationName": "Netflix", "state": "running", "reached": True}
        assert missed.json()["reached"] is False

    @pytest.mark.asyncio
    async def test_force_targets_application_id(self, notifier):
        registry = ApplicationRegistry(
            notifier=notifier,
            notification_method="org.rdk.Xcast.1.onApplicationStateChanged",
            simulate_latency=False,
            identity_includes_application_id=True
        )
        transport = httpx.ASGITransport(app=create_inspection_app(registry))
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/api/applications/YouTube/force",
                params={"applicationId": "7"},
                json={"state": "running", "notify": False}
            )
            single = await client.get("/api/applications/YouTube", params={"applicationId": "7"})

        assert response.status_code == 200
        assert response.json()["applicationId"] == "7"
        assert registry.get("YouTube", "7").state == ApplicationState.RUNNING
        assert registry.get("YouTube") is None
        assert single.json()["state"] == "running"
