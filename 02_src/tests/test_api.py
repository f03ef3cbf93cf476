"""Tests for the HTTP API."""

import httpx
import pytest
import pytest_asyncio

from event_monitor.api import create_fastapi_app
from event_monitor.api.routes import control
from event_monitor.app import Application

ORDER = "/event/Order_Placed__e"


@pytest_asyncio.fixture
async def application(tmp_path):
    """Start an application on an in-memory database."""
    app = Application(db_path=":memory:", catalog_path=tmp_path / "none.json")
    await app.start()
    yield app
    await app.stop()


@pytest_asyncio.fixture
async def api(application):
    """HTTP client bound to the FastAPI app."""
    transport = httpx.ASGITransport(app=create_fastapi_app(application))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register(api, channel=ORDER, label="Order Placed"):
    response = await api.post("/api/channels", json={"channel": channel, "label": label})
    assert response.status_code == 201
    return response.json()


async def subscribe_and_publish(api, application, payload=None):
    await register(api)
    await api.post("/api/subscriptions", json={"channel": ORDER})
    response = await api.post(
        "/api/control/publish",
        json={"channel": ORDER, "payload": payload or {"A__c": 1, "Items__c": "[1, 2]"}},
    )
    assert response.status_code == 200
    await application.registry.drain()
    events = (await api.get("/api/events", params={"channel": ORDER})).json()
    return events[0]["id"]


class TestChannelsAPI:
    """Tests for /api/channels."""

    @pytest.mark.asyncio
    async def test_register_channel(self, api):
        """Test registering a channel returns its row."""
        row = await register(api)
        assert row["id"] == ORDER
        assert row["category"] == "Custom"
        assert row["category_label"] == "Custom Platform Event"
        assert row["state"] == "unsubscribed"
        assert row["event_count"] == 0

    @pytest.mark.asyncio
    async def test_list_with_filters(self, api):
        """Test search and category filters."""
        await register(api)
        await register(api, "/data/AccountChangeEvent", "Account Change Event")

        assert len((await api.get("/api/channels")).json()) == 2
        rows = (await api.get("/api/channels", params={"search": "order"})).json()
        assert [r["id"] for r in rows] == [ORDER]
        rows = (await api.get("/api/channels", params={"category": "ChangeDataCapture"})).json()
        assert [r["id"] for r in rows] == ["/data/AccountChangeEvent"]
        assert len((await api.get("/api/channels", params={"category": "All"})).json()) == 2

    @pytest.mark.asyncio
    async def test_bad_category(self, api):
        """Test an unknown category is a 400."""
        response = await api.get("/api/channels", params={"category": "Bogus"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_refresh(self, api, application):
        """Test refresh picks up channels registered behind the API."""
        from event_monitor.models import Channel

        await application.discovery.register_channel(Channel.from_path("/event/Late__e"))
        rows = (await api.post("/api/channels/refresh")).json()
        assert [r["id"] for r in rows] == ["/event/Late__e"]


class TestSubscriptionsAPI:
    """Tests for /api/subscriptions."""

    @pytest.mark.asyncio
    async def test_subscribe_and_unsubscribe(self, api):
        """Test the subscribe/unsubscribe round."""
        await register(api)

        response = await api.post("/api/subscriptions", json={"channel": ORDER})
        assert response.json() == {"accepted": True, "state": "subscribed"}

        response = await api.post("/api/subscriptions", json={"channel": ORDER})
        assert response.json() == {"accepted": False, "state": "subscribed"}

        subscriptions = (await api.get("/api/subscriptions")).json()
        assert subscriptions == [{"channel": ORDER, "replay_cursor": -1, "state": "subscribed"}]

        response = await api.post("/api/subscriptions/unsubscribe", json={"channel": ORDER})
        assert response.json() == {"accepted": True, "state": "unsubscribed"}
        assert (await api.get("/api/subscriptions")).json() == []

    @pytest.mark.asyncio
    async def test_subscribe_unknown_channel(self, api):
        """Test subscribing to an undiscovered channel is a 404."""
        response = await api.post("/api/subscriptions", json={"channel": "/event/Nope__e"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_replay_cursor(self, api):
        """Test replay cursors below -2 are rejected."""
        await register(api)
        response = await api.post(
            "/api/subscriptions", json={"channel": ORDER, "replay_cursor": -3}
        )
        assert response.status_code == 422


class TestEventsAPI:
    """Tests for /api/events and /api/logs."""

    @pytest.mark.asyncio
    async def test_events_and_logs(self, api, application):
        """Test a published message shows up live and persisted."""
        event_id = await subscribe_and_publish(api, application)

        events = (await api.get("/api/events", params={"channel": ORDER})).json()
        assert len(events) == 1
        assert events[0]["id"] == event_id
        assert events[0]["replay_cursor"] == "1"
        assert events[0]["payload"]["A__c"] == 1
        assert events[0]["persisted_record_id"] is not None

        logs = (await api.get("/api/logs", params={"channel": ORDER})).json()
        assert len(logs) == 1
        assert logs[0]["id"] == events[0]["persisted_record_id"]
        assert logs[0]["event_type"] == "Custom Platform Event"

    @pytest.mark.asyncio
    async def test_events_with_numeric_metadata(self, api, application):
        """Test numeric CreatedById and CreatedDate are served as text."""
        await subscribe_and_publish(
            api, application, payload={"CreatedById": 42, "CreatedDate": 1700000000000}
        )

        response = await api.get("/api/events", params={"channel": ORDER})
        assert response.status_code == 200
        event = response.json()[0]
        assert event["published_by_id"] == "42"
        assert event["published_date"] == "1700000000000"
        assert event["payload"]["CreatedById"] == 42

        view = (await api.get("/api/dashboard")).json()
        assert view["events"][0]["published_by_id"] == "42"

    @pytest.mark.asyncio
    async def test_toggle_section(self, api, application):
        """Test toggling an event section."""
        event_id = await subscribe_and_publish(api, application)

        response = await api.post(f"/api/events/{event_id}/toggle", json={"section": "envelope"})
        assert response.json() == {"expanded": True}

        response = await api.post(f"/api/events/{event_id}/toggle", json={"section": "headers"})
        assert response.status_code == 400

        response = await api.post("/api/events/missing/toggle", json={"section": "payload"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_tree(self, api, application):
        """Test rendering and toggling an event tree."""
        event_id = await subscribe_and_publish(api, application)

        tree = (await api.get(f"/api/events/{event_id}/tree")).json()
        assert tree["kind"] == "object"
        items = next(c for c in tree["children"] if c["key"] == "Items__c")
        assert items["kind"] == "array"
        assert items["expanded"] is True

        response = await api.post(
            f"/api/events/{event_id}/tree/toggle",
            json={"section": "payload", "path": ["Items__c"]},
        )
        items = next(c for c in response.json()["children"] if c["key"] == "Items__c")
        assert items["expanded"] is False
        assert items["preview"] == "… 2 items"

        response = await api.get(f"/api/events/{event_id}/tree", params={"section": "bad"})
        assert response.status_code == 400

        response = await api.post(
            f"/api/events/{event_id}/tree/toggle",
            json={"section": "payload", "path": ["missing"]},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_clear(self, api, application):
        """Test clearing the active tab's logs."""
        await subscribe_and_publish(api, application)

        response = await api.post("/api/events/clear", json={})
        assert response.json() == {"channel": ORDER, "deleted": 1}
        assert (await api.get("/api/events", params={"channel": ORDER})).json() == []
        assert (await api.get("/api/logs")).json() == []

    @pytest.mark.asyncio
    async def test_clear_without_channel(self, api):
        """Test clearing with nothing selected is a 400."""
        response = await api.post("/api/events/clear", json={})
        assert response.status_code == 400


class TestDashboardAPI:
    """Tests for /api/dashboard."""

    @pytest.mark.asyncio
    async def test_dashboard_view(self, api, application):
        """Test the full view after one event."""
        await subscribe_and_publish(api, application)

        view = (await api.get("/api/dashboard")).json()
        assert view["active_tab"] == ORDER
        assert view["total_count"] == 1
        assert view["tabs"][0]["received"] == 1
        assert view["events"][0]["payload_expanded"] is True
        assert view["events"][0]["envelope_tree"] is None
        assert view["transport_available"] is True

    @pytest.mark.asyncio
    async def test_select_unsubscribed_tab(self, api):
        """Test selecting a tab that is not subscribed is a 404."""
        response = await api.post("/api/dashboard/tab", json={"channel": ORDER})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_filters(self, api):
        """Test setting filters through the API."""
        await register(api)

        view = (await api.post("/api/dashboard/filters", json={"search": "zzz"})).json()
        assert view["filtered_count"] == 0
        assert view["search_term"] == "zzz"

        response = await api.post("/api/dashboard/filters", json={"category": "Bogus"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_toasts_are_drained(self, api):
        """Test toasts are returned once."""
        await register(api)
        await api.post("/api/subscriptions", json={"channel": ORDER})

        toasts = (await api.get("/api/dashboard/toasts")).json()
        assert [t["title"] for t in toasts] == ["Subscribed"]
        assert (await api.get("/api/dashboard/toasts")).json() == []


class TestControlAPI:
    """Tests for /api/control."""

    @pytest.mark.asyncio
    async def test_transport_error(self, api):
        """Test an injected transport error becomes a toast."""
        response = await api.post("/api/control/transport-error", json={"detail": "connection lost"})
        assert response.json() == {"status": "ok"}

        toasts = (await api.get("/api/dashboard/toasts")).json()
        assert toasts[-1]["message"] == "transport: connection lost"

    @pytest.mark.asyncio
    async def test_reset(self, api, application):
        """Test reset drops subscriptions and logs."""
        await subscribe_and_publish(api, application)

        response = await api.post("/api/control/reset")
        assert response.json() == {"status": "ok"}
        assert (await api.get("/api/subscriptions")).json() == []
        assert (await api.get("/api/logs")).json() == []

    @pytest.mark.asyncio
    async def test_sim_not_configured(self, api):
        """Test sim controls without a sim are a 404."""
        control.set_sim_instance(None)
        response = await api.post("/api/control/sim/start")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_sim_start_and_stop(self, api):
        """Test sim controls call through to the sim."""
        calls = []

        class FakeSim:
            async def start(self):
                calls.append("start")

            async def stop(self):
                calls.append("stop")

        control.set_sim_instance(FakeSim())
        try:
            assert (await api.post("/api/control/sim/start")).json() == {"status": "ok"}
            assert (await api.post("/api/control/sim/stop")).json() == {"status": "ok"}
        finally:
            control.set_sim_instance(None)

        assert calls == ["start", "stop"]
