"""Main FastAPI application"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from boardsync.api import boards, sources, sync, trackers
from boardsync.config import settings
from boardsync.models.base import init_db
from boardsync.scheduler import scheduler
from boardsync.security import BasicAuthMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting Redmine to Trello sync service")
    init_db()
    if settings.scheduler_enabled:
        scheduler.start()
    yield
    logger.info("Stopping Redmine to Trello sync service")
    if settings.scheduler_enabled:
        scheduler.stop()


app = FastAPI(
    title="BoardSync",
    description="Incrementally mirror Redmine issues and comments onto Trello cards",
    version="1.0.0",
    lifespan=lifespan,
)

if settings.auth_enabled:
    if not settings.auth_username or not settings.auth_password:
        raise RuntimeError("AUTH_ENABLED=true requires AUTH_USERNAME and AUTH_PASSWORD to be set")
    app.add_middleware(
        BasicAuthMiddleware,
        username=settings.auth_username,
        password=settings.auth_password,
    )

app.include_router(trackers.router)
app.include_router(boards.router)
app.include_router(sources.router)
app.include_router(sync.router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "BoardSync"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "boardsync.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
