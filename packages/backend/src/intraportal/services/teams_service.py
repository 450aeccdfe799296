"""Microsoft Teams integration — channels, messages, sync, webhook.

Learn: Two directions:
1. Inbound: channel and message lists come from the Microsoft Graph API
   when INTRAPORTAL_GRAPH_TOKEN is set. Without a token, or when Graph
   fails, a built-in mock data set is served so the portal UI still works.
2. Outbound: POST /teams/send forwards a text message to a Teams
   incoming-webhook URL.

All HTTP goes through httpx.AsyncClient. Tests inject an
httpx.MockTransport instead of patching the network.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.config import settings
from intraportal.db.models import TeamsChannel, TeamsMessage
from intraportal.events.store import ActivityStore
from intraportal.events.types import SYNCED, TEAMS_CHANNEL
from intraportal.realtime.bridge import publish_change

logger = structlog.get_logger()

DEFAULT_WEBHOOK_TEXT = "Test message from backend!"


class TeamsWebhookNotConfigured(Exception):
    """Raised when no incoming-webhook URL is configured."""


class TeamsWebhookError(Exception):
    """Raised when the webhook call fails."""


def mock_channels() -> list[dict]:
    """Static channels used when Graph is not configured or unavailable."""
    now = datetime.now(timezone.utc)
    return [
        {
            "id": "channel-1",
            "name": "General",
            "description": "General discussions",
            "messages": [
                {
                    "id": "msg-1",
                    "sender": "John Doe",
                    "content": "Welcome to the portal!",
                    "timestamp": now - timedelta(hours=1),
                },
                {
                    "id": "msg-2",
                    "sender": "Jane Smith",
                    "content": "Great to have everyone here",
                    "timestamp": now - timedelta(minutes=30),
                },
            ],
        },
        {
            "id": "channel-2",
            "name": "Announcements",
            "description": "Important company announcements",
            "messages": [
                {
                    "id": "msg-3",
                    "sender": "Admin",
                    "content": "New policy updates available",
                    "timestamp": now,
                },
            ],
        },
    ]


class TeamsService:
    def __init__(
        self,
        db: Optional[AsyncSession] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.db = db
        self._transport = transport

    def _client(self, **kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=10.0, transport=self._transport, **kwargs)

    def _graph_client(self) -> httpx.AsyncClient:
        return self._client(
            base_url=settings.graph_api_base,
            headers={"Authorization": f"Bearer {settings.graph_token}"},
        )

    # ─── Inbound ────────────────────────────────────────

    async def get_channels(self) -> list[dict]:
        if not settings.graph_token:
            return mock_channels()
        try:
            return await self._fetch_channels()
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning("teams.channels_fallback", error=str(e))
            return mock_channels()

    async def get_messages(self, channel_id: str) -> list[dict]:
        if not settings.graph_token:
            for channel in mock_channels():
                if channel["id"] == channel_id:
                    return channel["messages"]
            return []
        try:
            return await self._fetch_messages(channel_id)
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning("teams.messages_failed", channel_id=channel_id, error=str(e))
            return []

    async def _fetch_channels(self) -> list[dict]:
        async with self._graph_client() as client:
            resp = await client.get(f"/teams/{settings.graph_team_id}/channels")
            resp.raise_for_status()
            return [
                {
                    "id": item["id"],
                    "name": item.get("displayName", ""),
                    "description": item.get("description"),
                    "messages": [],
                }
                for item in resp.json()["value"]
            ]

    async def _fetch_messages(self, channel_id: str) -> list[dict]:
        async with self._graph_client() as client:
            resp = await client.get(
                f"/teams/{settings.graph_team_id}/channels/{channel_id}/messages"
            )
            resp.raise_for_status()
            return [
                {
                    "id": item["id"],
                    "sender": ((item.get("from") or {}).get("user") or {}).get("displayName"),
                    "content": (item.get("body") or {}).get("content"),
                    "timestamp": item.get("createdDateTime"),
                }
                for item in resp.json()["value"]
            ]

    # ─── Sync ───────────────────────────────────────────

    async def sync(self, user_id: str) -> dict:
        """Mirror channels (and any bundled messages) into the database."""
        if self.db is None:
            raise RuntimeError("TeamsService.sync requires a database session")

        channels = await self.get_channels()
        now = datetime.now(timezone.utc)
        created = 0
        messages_count = 0

        for data in channels:
            result = await self.db.execute(
                select(TeamsChannel).where(TeamsChannel.teams_id == data["id"])
            )
            channel = result.scalars().first()
            messages = data.get("messages") or []
            if channel is None:
                channel = TeamsChannel(teams_id=data["id"], name=data["name"])
                self.db.add(channel)
                created += 1
            channel.name = data["name"]
            channel.description = data.get("description")
            channel.message_count = len(messages)
            channel.last_synced = now
            await self.db.flush()

            for msg in messages:
                await self._upsert_message(channel.id, msg)
                messages_count += 1

        await ActivityStore(self.db).append(
            user_id=user_id,
            resource_type=TEAMS_CHANNEL,
            action=SYNCED,
            metadata={"channels": len(channels), "created": created},
        )
        await self.db.commit()
        logger.info("teams.synced", channels=len(channels), created=created)

        summary = {
            "channels_count": len(channels),
            "created": created,
            "messages_count": messages_count,
        }
        await publish_change(TEAMS_CHANNEL, SYNCED, summary)
        return summary

    async def _upsert_message(self, channel_id: uuid.UUID, msg: dict) -> None:
        result = await self.db.execute(
            select(TeamsMessage).where(TeamsMessage.teams_message_id == msg["id"])
        )
        row = result.scalars().first()
        if row is None:
            row = TeamsMessage(teams_message_id=msg["id"], channel_id=channel_id)
            self.db.add(row)
        row.sender_name = msg.get("sender")
        row.content = msg.get("content")

    # ─── Outbound ───────────────────────────────────────

    async def send_message(self, text: Optional[str]) -> None:
        url = settings.teams_webhook_url
        if not url:
            raise TeamsWebhookNotConfigured("Teams Webhook URL missing")
        try:
            async with self._client() as client:
                resp = await client.post(url, json={"text": text or DEFAULT_WEBHOOK_TEXT})
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("teams.webhook_failed", error=str(e))
            raise TeamsWebhookError(str(e)) from e
