"""Master API router — includes all sub-routers."""

from fastapi import APIRouter

from .routes.analytics import router as analytics_router
from .routes.export import router as export_router
from .routes.health import router as health_router
from .routes.incidents import router as incidents_router
from .routes.investigations import router as investigations_router
from .routes.playbooks import router as playbooks_router
from .routes.responders import router as responders_router
from .routes.rules import router as rules_router
from .websockets.events import router as ws_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router)
api_router.include_router(incidents_router)
api_router.include_router(responders_router)
api_router.include_router(playbooks_router)
api_router.include_router(investigations_router)
api_router.include_router(rules_router)
api_router.include_router(analytics_router)
api_router.include_router(export_router)

# WebSocket router is mounted at root level (no prefix)
websocket_router = ws_router
