"""StoryJournal application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storyjournal.api import analysis, stories
from storyjournal.config import get_settings
from storyjournal.core.usage import UsageTracker
from storyjournal.models.database import close_db, init_db

# Logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan."""
    app_settings = get_settings()

    logger.info("Initializing database...")
    await init_db(app_settings.database_url)

    if not app_settings.llm_configured:
        logger.warning("LLM_API_KEY is not set, story analysis will be unavailable")

    logger.info("StoryJournal started")
    yield

    logger.info("Shutting down...")
    stats = app.state.usage_tracker.stats()
    logger.info(
        f"Usage this run: {stats.total_api_calls} calls, "
        f"{stats.total_tokens_used} tokens, ~${stats.estimated_cost:.4f}"
    )
    await close_db()


app = FastAPI(
    title="StoryJournal",
    description="Personal storytelling journal with AI story structure extraction",
    version="0.1.0",
    lifespan=lifespan,
)

# One usage tracker per process
app.state.usage_tracker = UsageTracker(unit_rate=get_settings().usage_unit_rate)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # restrict to the web app origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(stories.router)
app.include_router(analysis.router)


@app.get("/")
async def root() -> dict:
    """Service info."""
    return {
        "name": "StoryJournal",
        "version": "0.1.0",
        "description": "Personal storytelling journal",
    }


@app.get("/health")
async def health() -> dict:
    """Health check."""
    return {"status": "ok", "llm_configured": get_settings().llm_configured}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storyjournal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
