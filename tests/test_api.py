import pytest
from httpx import ASGITransport, AsyncClient

from outage_notifier.config import Settings
from outage_notifier.main import app
from outage_notifier.services.monitor import Monitor, get_monitor
from outage_notifier.services.state_store import InMemoryStateStore

from factories import make_raw

EMERGENCY = {
    "sub_type": "Аварійне відключення",
    "start_date": "09:00 09.11.2025",
    "end_date": "12:00 09.11.2025",
    "type": "2",
}


async def _deliver(text: str, message_id: int | None = None) -> int:
    return message_id or 1


def _make_monitor(raw: dict) -> Monitor:
    async def fetch():
        return raw

    return Monitor(
        store=InMemoryStateStore(),
        fetch=fetch,
        deliver=_deliver,
        config=Settings(house="1", timezone="Europe/Kyiv"),
    )


@pytest.fixture
def monitor():
    # Emergency-only document: the outcome does not depend on the wall clock.
    raw = make_raw(house=EMERGENCY)
    del raw["fact"]
    m = _make_monitor(raw)
    app.dependency_overrides[get_monitor] = lambda: m
    yield m
    app.dependency_overrides.clear()


@pytest.fixture
async def client(monitor):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_outage_empty_before_first_cycle(client):
    resp = await client.get("/api/v1/outage/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["emergency_outage"] is None
    assert data["scheduled_window"] is None


@pytest.mark.asyncio
async def test_state_empty_before_first_cycle(client):
    resp = await client.get("/api/v1/outage/state")
    assert resp.status_code == 200
    assert resp.json() is None


@pytest.mark.asyncio
async def test_poll_then_read(client):
    resp = await client.post("/api/v1/admin/poll")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "complete"
    assert data["action"] == "emergency-update"
    assert "09:00 09.11.2025" in data["fingerprint"]

    outage = (await client.get("/api/v1/outage/")).json()
    assert outage["emergency_outage"]["subtype"] == "Аварійне відключення"
    assert outage["emergency_outage"]["end_timestamp"] == "12:00 09.11.2025"

    state = (await client.get("/api/v1/outage/state")).json()
    assert state["kind"] == "update"
    assert state["fingerprint"] == data["fingerprint"]

    again = (await client.post("/api/v1/admin/poll")).json()
    assert again["action"] == "none"
    assert again["reason"] == "duplicate"


@pytest.mark.asyncio
async def test_poll_missing_data(client):
    app.dependency_overrides[get_monitor] = lambda: _make_monitor({"result": False})
    resp = await client.post("/api/v1/admin/poll")
    assert resp.status_code == 502


@pytest.mark.asyncio
async def test_history_without_store(client):
    resp = await client.get("/api/v1/outage/history", params={"limit": 5})
    assert resp.status_code == 200
    assert resp.json() == []
