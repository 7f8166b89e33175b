"""Stories API."""

from datetime import date as date_type
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from storyjournal.api.deps import get_analysis_service, to_http_exception
from storyjournal.auth import CurrentUser, get_current_user
from storyjournal.core.analysis import (
    StoryAnalysisService,
    analyze_story,
    fetch_story_with_details,
    story_needs_analysis,
    update_story_details,
)
from storyjournal.core.stories import (
    SortField,
    SortOrder,
    create_story,
    delete_story,
    get_story,
    list_stories,
)
from storyjournal.errors import AnalysisError, StoryNotFoundError, ValidationError
from storyjournal.models.database import get_session

router = APIRouter(prefix="/api/stories", tags=["stories"])


class StoryCreate(BaseModel):
    """New story."""

    freeform_text: str
    title: str | None = None
    date: date_type | None = None
    setting: str | None = None
    tags: str | list[str] | None = None


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Story not found")


@router.get("")
async def get_stories(
    sort: SortField = Query("date", description="Sort field"),
    order: SortOrder = Query("desc", description="Sort order"),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """List the user's stories."""
    stories = await list_stories(session, user.id, sort_by=sort, order=order)
    return {
        "total": len(stories),
        "items": [s.to_dict() for s in stories],
    }


@router.post("", status_code=201)
async def add_story(
    body: StoryCreate,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Save a new story. Analysis runs when the story is first opened."""
    try:
        story = await create_story(
            session,
            user.id,
            body.freeform_text,
            title=body.title,
            story_date=body.date,
            setting=body.setting,
            tags=body.tags,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.user_message) from e
    return story.to_dict()


@router.get("/{story_id}")
async def get_story_detail(
    story_id: str,
    analyze: bool = Query(False, description="Analyze now if never analyzed"),
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    service: StoryAnalysisService = Depends(get_analysis_service),
) -> dict:
    """Get a story with its details, optionally running the first analysis."""
    try:
        loaded = await fetch_story_with_details(session, story_id, user_id=user.id)
    except StoryNotFoundError as e:
        raise _not_found() from e

    details = loaded.details
    errors: list[str] = []
    if details is None and analyze:
        details = await analyze_story(
            service,
            story_id=story_id,
            story_text=loaded.story.freeform_text,
            user_id=user.id,
            on_error=errors.append,
        )

    return {
        "story": loaded.story.to_dict(),
        "details": details.to_dict() if details else None,
        "analysis_error": errors[0] if errors else None,
    }


@router.delete("/{story_id}")
async def remove_story(
    story_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Delete a story and its details."""
    try:
        await delete_story(session, story_id, user.id)
    except StoryNotFoundError as e:
        raise _not_found() from e
    return {"success": True}


@router.post("/{story_id}/analyze")
async def reanalyze_story(
    story_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    service: StoryAnalysisService = Depends(get_analysis_service),
) -> dict:
    """Run the analysis again, overwriting the current details."""
    try:
        story = await get_story(session, story_id, user.id)
    except StoryNotFoundError as e:
        raise _not_found() from e

    try:
        details = await service.run(story.id, story.freeform_text)
    except AnalysisError as e:
        raise to_http_exception(e) from e
    return details.to_dict()


@router.patch("/{story_id}/details")
async def edit_story_details(
    story_id: str,
    updates: dict[str, Any],
    user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Edit some fields of the story details by hand."""
    try:
        await get_story(session, story_id, user.id)
    except StoryNotFoundError as e:
        raise _not_found() from e

    if await story_needs_analysis(session, story_id):
        raise HTTPException(status_code=404, detail="Story has not been analyzed yet")

    if not await update_story_details(session, story_id, updates):
        raise HTTPException(status_code=400, detail="Could not update story details")
    return {"success": True}
