"""Vigil IR — incident response backend.

FastAPI entry point with lifespan management, sample data seeding, and CORS.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.router import api_router, websocket_router
from .api.websockets.events import manager as ws_manager
from .dependencies import get_app_config, get_event_bus, get_incident_store
from .engine.seed import seed_sample_data
from .middleware.error_handler import register_error_handlers
from .middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware
from .utils.logging import get_logger, setup_logging

config = get_app_config()
setup_logging(
    debug=config.debug,
    log_dir=config.log_dir,
    log_max_bytes=config.log_max_bytes,
    log_backup_count=config.log_backup_count,
)
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the event bus, wire the WebSocket feed and seed defaults."""
    logger.info("vigil_starting", version=__version__)

    event_bus = get_event_bus()
    await event_bus.start()
    event_bus.subscribe(ws_manager.on_store_event)

    store = get_incident_store()
    if config.seed_sample_data:
        seed_sample_data(store)

    logger.info("vigil_started", host=config.host, port=config.port)
    yield

    logger.info("vigil_shutting_down")
    event_bus.unsubscribe(ws_manager.on_store_event)
    await ws_manager.close_all()
    await event_bus.stop()
    logger.info("vigil_stopped")


app = FastAPI(
    title="VIGIL",
    description="Incident response tracking: incidents, playbooks, forensics and analytics",
    version=__version__,
    lifespan=lifespan,
)

# Register standard error handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", REQUEST_ID_HEADER],
)

# Request ID: correlation IDs on every request (added LAST so it runs FIRST)
app.add_middleware(RequestIDMiddleware)

# Mount API routes
app.include_router(api_router)
app.include_router(websocket_router)


@app.get("/")
async def root():
    """Root endpoint — basic service identification."""
    return {"name": config.app_name, "version": __version__, "status": "operational"}


def main():
    """Run the Vigil server."""
    uvicorn.run(
        "vigil.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )


if __name__ == "__main__":
    main()
