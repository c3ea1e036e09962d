"""
Learning progress service.

Run with: uvicorn main:app
"""

import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI

from core.catalog import refresh_catalog
from core.config import DATABASE_URL, SENTRY_DSN
from core.database import close_engine, create_tables
from core.session import close_all_sessions
from core.session.scheduler import init_scheduler, shutdown_scheduler
from web_api.routes import formations, sessions

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if SENTRY_DSN:
        sentry_sdk.init(dsn=SENTRY_DSN, traces_sample_rate=0.0)
        logger.info("Sentry initialized")

    cache = refresh_catalog()
    logger.info(f"Catalog loaded: {len(cache.formations)} formations, {len(cache.courses)} courses")

    if DATABASE_URL:
        await create_tables()
    init_scheduler()

    yield

    closed = await close_all_sessions()
    if closed:
        logger.info(f"Flushed {closed} open sessions on shutdown")
    shutdown_scheduler()
    await close_engine()


app = FastAPI(title="Learning Progress", lifespan=lifespan)

app.include_router(formations.router)
app.include_router(sessions.router)
