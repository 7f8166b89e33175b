"""Story journal CRUD."""

import json
import logging
from datetime import date
from typing import Literal

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from storyjournal.errors import StoryNotFoundError, ValidationError
from storyjournal.models.story import Story
from storyjournal.models.story_details import StoryDetails

logger = logging.getLogger(__name__)

SortField = Literal["date", "title", "created_at"]
SortOrder = Literal["asc", "desc"]

_SORT_COLUMNS = {
    "date": Story.date,
    "title": Story.title,
    "created_at": Story.created_at,
}


def parse_tags(tags: str | list[str] | None) -> list[str] | None:
    """Split comma separated tags, dropping blanks. No tags -> None."""
    if tags is None:
        return None
    items = tags.split(",") if isinstance(tags, str) else tags
    cleaned = [t.strip() for t in items if t.strip()]
    return cleaned or None


async def create_story(
    session: AsyncSession,
    user_id: str,
    freeform_text: str,
    title: str | None = None,
    story_date: date | None = None,
    setting: str | None = None,
    tags: str | list[str] | None = None,
) -> Story:
    """Save a new story."""
    if not freeform_text or not freeform_text.strip():
        raise ValidationError("Please share your story. This field is required.")

    tag_list = parse_tags(tags)
    story = Story(
        user_id=user_id,
        title=title or None,
        date=story_date or date.today(),
        setting=setting or None,
        tags=json.dumps(tag_list, ensure_ascii=False) if tag_list else None,
        freeform_text=freeform_text,
    )
    session.add(story)
    await session.commit()
    await session.refresh(story)

    logger.info(f"Story {story.id} created for user {user_id}")
    return story


async def list_stories(
    session: AsyncSession,
    user_id: str,
    sort_by: SortField = "date",
    order: SortOrder = "desc",
) -> list[Story]:
    """List a user's stories."""
    column = _SORT_COLUMNS[sort_by]
    stmt = (
        select(Story)
        .where(Story.user_id == user_id)
        .order_by(column.asc() if order == "asc" else column.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_story(session: AsyncSession, story_id: str, user_id: str) -> Story:
    """Load a story owned by the user."""
    story = await session.get(Story, story_id)
    if story is None or story.user_id != user_id:
        raise StoryNotFoundError(story_id)
    return story


async def delete_story(session: AsyncSession, story_id: str, user_id: str) -> None:
    """Delete a story together with its details row."""
    story = await get_story(session, story_id, user_id)

    await session.execute(delete(StoryDetails).where(StoryDetails.story_id == story_id))
    await session.delete(story)
    await session.commit()

    logger.info(f"Story {story_id} deleted")

