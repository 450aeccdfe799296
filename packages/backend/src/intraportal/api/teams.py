"""Microsoft Teams API routes — channels, messages, sync, webhook send."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.auth.dependencies import CurrentIdentity, get_current_user
from intraportal.db.engine import get_db
from intraportal.schemas.teams import (
    TeamsChannel,
    TeamsMessage,
    TeamsSendRequest,
    TeamsSyncResult,
)
from intraportal.services.teams_service import (
    TeamsService,
    TeamsWebhookError,
    TeamsWebhookNotConfigured,
)

router = APIRouter(prefix="/teams")


def get_teams_service(db: AsyncSession = Depends(get_db)) -> TeamsService:
    return TeamsService(db)


@router.get("/channels", response_model=list[TeamsChannel])
async def list_channels(svc: TeamsService = Depends(get_teams_service)):
    return await svc.get_channels()


@router.get("/channels/{channel_id}/messages", response_model=list[TeamsMessage])
async def list_channel_messages(
    channel_id: str, svc: TeamsService = Depends(get_teams_service)
):
    return await svc.get_messages(channel_id)


@router.post("/sync")
async def sync_channels(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: TeamsService = Depends(get_teams_service),
):
    result = await svc.sync(identity.user_id)
    return {
        "message": "Teams data synced successfully",
        "result": TeamsSyncResult(**result),
    }


@router.post("/send")
async def send_message(
    body: TeamsSendRequest,
    svc: TeamsService = Depends(get_teams_service),
):
    try:
        await svc.send_message(body.message)
    except TeamsWebhookNotConfigured as e:
        raise HTTPException(status_code=500, detail=str(e))
    except TeamsWebhookError:
        raise HTTPException(status_code=502, detail="Failed to send Teams message")
    return {"success": True, "message": "Message sent to Teams"}
