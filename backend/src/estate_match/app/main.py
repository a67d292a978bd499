"""FastAPI application entry point for the Estate Match API."""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from estate_match.app.config import get_settings
from estate_match.infra.database import async_session, init_db
from estate_match.infra.repository import Repository
from estate_match.services import email_service
from estate_match.services.pending_informer import build_pending_digest

logger = logging.getLogger(__name__)


async def staleness_monitor_loop(interval_minutes: int):
    """Build and send the pending digest every ``interval_minutes``."""
    while True:
        try:
            messages = await build_pending_digest(Repository(async_session), get_settings())
            sent = await email_service.send_batch(messages)
            if sent:
                logger.info("Staleness monitor: sent %d digest emails", sent)
        except Exception as e:
            logger.error("Staleness monitor error: %s", e)
        await asyncio.sleep(interval_minutes * 60)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database, start the optional digest loop."""
    await init_db()

    task = None
    interval = get_settings().staleness_check_interval_minutes
    if interval > 0:
        task = asyncio.create_task(staleness_monitor_loop(interval))
    yield
    if task is not None:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task


settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.debug else logging.WARNING,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

app = FastAPI(
    title="Estate Match API",
    lifespan=lifespan,
    debug=settings.debug,
)

_cors_origins = settings.cors_origins_list
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=("*" not in _cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Route includes
# ---------------------------------------------------------------------------
from estate_match.app.routes.dashboard import router as dashboard_router
from estate_match.app.routes.deals import router as deals_router
from estate_match.app.routes.requirements import router as requirements_router
from estate_match.app.routes.webhooks import router as webhooks_router

app.include_router(deals_router)
app.include_router(requirements_router)
app.include_router(webhooks_router)
app.include_router(dashboard_router)


@app.get("/health", tags=["health"])
async def health_check():
    """Return service health status."""
    return {"status": "ok", "service": "estate-match"}


def run() -> None:
    """Run the application with uvicorn (used by project.scripts entry point)."""
    uvicorn.run(
        "estate_match.app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
