"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open (no auth required).
"""

from fastapi import APIRouter, Depends

from intraportal.api.announcements import router as announcements_router
from intraportal.api.auth import router as auth_router
from intraportal.api.documents import router as documents_router
from intraportal.api.events import router as events_router
from intraportal.api.health import router as health_router
from intraportal.api.news import router as news_router
from intraportal.api.realtime import router as realtime_router
from intraportal.api.teams import router as teams_router
from intraportal.api.users import router as users_router
from intraportal.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid JWT
api_router.include_router(news_router, tags=["news"], dependencies=_auth)
api_router.include_router(events_router, tags=["events"], dependencies=_auth)
api_router.include_router(documents_router, tags=["documents"], dependencies=_auth)
api_router.include_router(announcements_router, tags=["announcements"], dependencies=_auth)
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
api_router.include_router(teams_router, tags=["teams"], dependencies=_auth)
api_router.include_router(realtime_router, tags=["realtime"], dependencies=_auth)
