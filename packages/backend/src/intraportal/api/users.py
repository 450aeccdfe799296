"""User API routes — the caller's own profile, preferences and activity."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.auth.dependencies import CurrentIdentity, get_current_user
from intraportal.db.engine import get_db
from intraportal.schemas.user import (
    ActivityRead,
    PreferencesRead,
    PreferencesUpdate,
    ProfileUpdate,
    UserRead,
)
from intraportal.services.user_service import UserService

router = APIRouter(prefix="/users")


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/profile", response_model=UserRead)
async def get_profile(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    user = await svc.get_user(identity.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.put("/profile", response_model=UserRead)
async def update_profile(
    body: ProfileUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    user = await svc.update_profile(identity.user_id, body)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/preferences", response_model=PreferencesRead)
async def get_preferences(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    prefs = await svc.get_preferences(identity.user_id)
    if not prefs:
        raise HTTPException(status_code=404, detail="Preferences not found")
    return prefs


@router.put("/preferences", response_model=PreferencesRead)
async def update_preferences(
    body: PreferencesUpdate,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    prefs = await svc.update_preferences(identity.user_id, body)
    if not prefs:
        raise HTTPException(status_code=404, detail="Preferences not found")
    return prefs


@router.get("/activity", response_model=list[ActivityRead])
async def get_activity(
    limit: int = Query(50, ge=1, le=200),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    return await svc.recent_activity(identity.user_id, limit=limit)
