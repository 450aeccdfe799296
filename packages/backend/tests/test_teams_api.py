"""Microsoft Teams integration tests.

Learn: No network. Graph and webhook calls go through an
httpx.MockTransport injected into TeamsService; the API tests swap the
service in via dependency_overrides.
"""

import httpx
import pytest
from sqlalchemy import func, select

from intraportal.api.teams import get_teams_service
from intraportal.config import settings
from intraportal.db.models import TeamsChannel, TeamsMessage
from intraportal.main import app
from intraportal.services.teams_service import (
    TeamsService,
    TeamsWebhookError,
    TeamsWebhookNotConfigured,
)


def _use_transport(db_session, handler):
    transport = httpx.MockTransport(handler)
    app.dependency_overrides[get_teams_service] = lambda: TeamsService(
        db_session, transport=transport
    )


# ═══════════════════════════════════════════════════════════
# Channels & messages
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_list_channels_mock_without_graph_token(client, monkeypatch):
    monkeypatch.setattr(settings, "graph_token", "")
    resp = await client.get("/api/v1/teams/channels")
    assert resp.status_code == 200
    names = [c["name"] for c in resp.json()]
    assert names == ["General", "Announcements"]


@pytest.mark.asyncio
async def test_list_mock_channel_messages(client, monkeypatch):
    monkeypatch.setattr(settings, "graph_token", "")
    resp = await client.get("/api/v1/teams/channels/channel-1/messages")
    assert [m["id"] for m in resp.json()] == ["msg-1", "msg-2"]

    resp = await client.get("/api/v1/teams/channels/nope/messages")
    assert resp.json() == []


@pytest.mark.asyncio
async def test_graph_channels_normalized(monkeypatch):
    monkeypatch.setattr(settings, "graph_token", "graph-token")
    monkeypatch.setattr(settings, "graph_team_id", "team-42")
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(
            200,
            json={"value": [{"id": "19:abc", "displayName": "Engineering", "description": None}]},
        )

    svc = TeamsService(transport=httpx.MockTransport(handler))
    channels = await svc.get_channels()

    assert channels == [
        {"id": "19:abc", "name": "Engineering", "description": None, "messages": []}
    ]
    assert seen["path"].endswith("/teams/team-42/channels")
    assert seen["auth"] == "Bearer graph-token"


@pytest.mark.asyncio
async def test_graph_failure_falls_back_to_mock(monkeypatch):
    monkeypatch.setattr(settings, "graph_token", "graph-token")
    svc = TeamsService(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
    channels = await svc.get_channels()
    assert [c["id"] for c in channels] == ["channel-1", "channel-2"]


# ═══════════════════════════════════════════════════════════
# Sync
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_sync_mirrors_channels(client, db_session, monkeypatch):
    monkeypatch.setattr(settings, "graph_token", "")

    resp = await client.post("/api/v1/teams/sync")
    assert resp.status_code == 200
    assert resp.json()["result"] == {
        "channels_count": 2,
        "created": 2,
        "messages_count": 3,
    }

    # Second sync updates in place
    resp = await client.post("/api/v1/teams/sync")
    assert resp.json()["result"]["created"] == 0

    channels = await db_session.scalar(select(func.count()).select_from(TeamsChannel))
    messages = await db_session.scalar(select(func.count()).select_from(TeamsMessage))
    assert channels == 2
    assert messages == 3


# ═══════════════════════════════════════════════════════════
# Webhook send
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_send_without_webhook_url(client, monkeypatch):
    monkeypatch.setattr(settings, "teams_webhook_url", "")
    resp = await client.post("/api/v1/teams/send", json={"message": "hi"})
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Teams Webhook URL missing"


@pytest.mark.asyncio
async def test_send_posts_to_webhook(client, db_session, monkeypatch):
    monkeypatch.setattr(settings, "teams_webhook_url", "https://hooks.example.com/abc")
    posted = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append((str(request.url), request.read()))
        return httpx.Response(200, text="1")

    _use_transport(db_session, handler)
    resp = await client.post("/api/v1/teams/send", json={"message": "Deploy done"})

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert posted[0][0] == "https://hooks.example.com/abc"
    assert b"Deploy done" in posted[0][1]


@pytest.mark.asyncio
async def test_send_default_text(monkeypatch):
    monkeypatch.setattr(settings, "teams_webhook_url", "https://hooks.example.com/abc")
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(request.read())
        return httpx.Response(200)

    await TeamsService(transport=httpx.MockTransport(handler)).send_message(None)
    assert b"Test message from backend!" in bodies[0]


@pytest.mark.asyncio
async def test_send_webhook_failure(client, db_session, monkeypatch):
    monkeypatch.setattr(settings, "teams_webhook_url", "https://hooks.example.com/abc")
    _use_transport(db_session, lambda r: httpx.Response(400, text="bad payload"))

    resp = await client.post("/api/v1/teams/send", json={"message": "x"})
    assert resp.status_code == 502


@pytest.mark.asyncio
async def test_service_errors_are_typed(monkeypatch):
    monkeypatch.setattr(settings, "teams_webhook_url", "")
    with pytest.raises(TeamsWebhookNotConfigured):
        await TeamsService().send_message("x")

    monkeypatch.setattr(settings, "teams_webhook_url", "https://hooks.example.com/abc")
    svc = TeamsService(transport=httpx.MockTransport(lambda r: httpx.Response(500)))
    with pytest.raises(TeamsWebhookError):
        await svc.send_message("x")
