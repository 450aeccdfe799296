"""Real-time stats route (authenticated)."""

from fastapi import APIRouter, HTTPException

from intraportal.realtime.hub import current_hub

router = APIRouter(prefix="/realtime")


@router.get("/stats")
async def realtime_stats():
    hub = current_hub()
    if hub is None:
        raise HTTPException(status_code=503, detail="Realtime hub not running")
    return await hub.stats()
