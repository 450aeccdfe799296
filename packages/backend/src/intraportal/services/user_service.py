"""User service — accounts, profiles, preferences and activity.

Learn: Registration creates the user and their default preferences row
in one transaction, so every account always has preferences to read.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.auth.password import hash_password, verify_password
from intraportal.db.models import ActivityLog, PortalPreferences, User
from intraportal.events.store import ActivityStore
from intraportal.events.types import CREATED, PREFERENCES, UPDATED, USER
from intraportal.schemas.user import PreferencesUpdate, ProfileUpdate


class EmailAlreadyRegisteredError(Exception):
    pass


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.activity = ActivityStore(db)

    # ─── Accounts ───────────────────────────────────────

    async def get_user(self, user_id: str | uuid.UUID) -> Optional[User]:
        if isinstance(user_id, str):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def register(self, email: str, name: str, password: str) -> User:
        if await self.get_by_email(email):
            raise EmailAlreadyRegisteredError(email)

        user = User(
            email=email,
            name=name,
            password_hash=hash_password(password),
            role="user",
            timezone="UTC",
        )
        self.db.add(user)
        await self.db.flush()
        self.db.add(PortalPreferences(user_id=user.id))

        await self.activity.append(
            user_id=user.id, resource_type=USER, action=CREATED, resource_id=user.id
        )
        await self.db.commit()
        return user

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Check credentials and stamp last_login. None on any mismatch."""
        user = await self.get_by_email(email)
        if user is None or not user.password_hash:
            return None
        if not verify_password(password, user.password_hash):
            return None

        user.last_login = datetime.now(timezone.utc)
        await self.db.commit()
        return user

    # ─── Profile ────────────────────────────────────────

    async def update_profile(
        self, user_id: str, body: ProfileUpdate
    ) -> Optional[User]:
        user = await self.get_user(user_id)
        if user is None:
            return None

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = datetime.now(timezone.utc)

        await self.activity.append(
            user_id=user.id,
            resource_type=USER,
            action=UPDATED,
            resource_id=user.id,
            metadata={"fields": sorted(changes)},
        )
        await self.db.commit()
        return user

    # ─── Preferences ────────────────────────────────────

    async def get_preferences(self, user_id: str) -> Optional[PortalPreferences]:
        result = await self.db.execute(
            select(PortalPreferences).where(
                PortalPreferences.user_id == uuid.UUID(user_id)
            )
        )
        return result.scalars().first()

    async def update_preferences(
        self, user_id: str, body: PreferencesUpdate
    ) -> Optional[PortalPreferences]:
        prefs = await self.get_preferences(user_id)
        if prefs is None:
            return None

        changes = body.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(prefs, field, value)
        prefs.updated_at = datetime.now(timezone.utc)

        await self.activity.append(
            user_id=user_id,
            resource_type=PREFERENCES,
            action=UPDATED,
            resource_id=prefs.id,
            metadata={"fields": sorted(changes)},
        )
        await self.db.commit()
        return prefs

    # ─── Activity ───────────────────────────────────────

    async def recent_activity(self, user_id: str, limit: int = 50) -> list[ActivityLog]:
        return await self.activity.for_user(user_id, limit=limit)
