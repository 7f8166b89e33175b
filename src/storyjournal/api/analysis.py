"""Analysis relay and usage API."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from storyjournal.api.deps import get_usage_tracker, to_http_exception
from storyjournal.auth import CurrentUser, get_current_user
from storyjournal.config import get_settings
from storyjournal.core.usage import UsageTracker
from storyjournal.errors import AnalysisError
from storyjournal.llm import build_messages, create_llm_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


class AnalyzeStoryRequest(BaseModel):
    """Relay request."""

    model_config = ConfigDict(populate_by_name=True)

    story_text: str | None = Field(default=None, alias="storyText")
    story_id: str | None = Field(default=None, alias="storyId")


@router.post("/analyze-story")
async def relay_analysis(
    body: AnalyzeStoryRequest,
    user: CurrentUser = Depends(get_current_user),
    tracker: UsageTracker = Depends(get_usage_tracker),
) -> dict:
    """Run the analysis prompt and return the raw model reply.

    Keeps the gateway credential on the server; parsing and saving are left
    to the caller.
    """
    if not body.story_text or not body.story_text.strip():
        raise HTTPException(status_code=400, detail="Missing storyText")

    logger.info(f"Relaying analysis for user {user.id} (story {body.story_id or '-'})")

    try:
        provider = create_llm_provider(get_settings())
        completion = await provider.chat(build_messages(body.story_text))
    except AnalysisError as e:
        raise to_http_exception(e) from e

    if completion.usage is not None:
        tracker.track(completion.usage.total_tokens)

    return {
        "content": completion.content,
        "usage": completion.usage.model_dump() if completion.usage else None,
    }


@router.get("/usage")
async def get_usage(
    user: CurrentUser = Depends(get_current_user),
    tracker: UsageTracker = Depends(get_usage_tracker),
) -> dict:
    """Token usage and estimated cost since startup."""
    stats = tracker.stats()
    return {
        "total_tokens_used": stats.total_tokens_used,
        "total_api_calls": stats.total_api_calls,
        "estimated_cost": stats.estimated_cost,
    }
