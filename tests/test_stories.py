"""Tests for story CRUD."""

from datetime import date, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from storyjournal.core.analysis import get_details, save_analysis
from storyjournal.core.stories import (
    create_story,
    delete_story,
    get_story,
    list_stories,
    parse_tags,
)
from storyjournal.errors import StoryNotFoundError, ValidationError
from storyjournal.llm.analyzer import AnalysisResult
from storyjournal.models.story import Story
from storyjournal.models.story_details import StoryDetails

USER_ID = "user-001"


class TestParseTags:
    """Tests for parse_tags."""

    def test_comma_separated(self) -> None:
        assert parse_tags(" travel, family ,, ") == ["travel", "family"]

    def test_list(self) -> None:
        assert parse_tags(["work", " "]) == ["work"]

    @pytest.mark.parametrize("tags", [None, "", " , ", []])
    def test_empty(self, tags: object) -> None:
        assert parse_tags(tags) is None


class TestTimestamps:
    """Tests for model timestamp defaults."""

    def test_story_timestamps_are_utc(self) -> None:
        story = Story(user_id=USER_ID, freeform_text="Text")
        assert story.created_at.tzinfo is not None
        assert story.created_at.utcoffset() == timedelta(0)
        assert story.updated_at.tzinfo is not None

    def test_details_timestamps_are_utc(self) -> None:
        details = StoryDetails(story_id="story-001")
        assert details.created_at.utcoffset() == timedelta(0)
        assert details.updated_at.utcoffset() == timedelta(0)


class TestCreateStory:
    """Tests for create_story."""

    async def test_creates_story(self, async_session: AsyncSession) -> None:
        story = await create_story(
            async_session,
            USER_ID,
            "We missed the last ferry.",
            title="Ferry",
            story_date=date(2023, 7, 14),
            tags="travel, summer",
        )

        assert story.id
        assert story.user_id == USER_ID
        assert story.date == date(2023, 7, 14)
        assert story.tag_list() == ["travel", "summer"]
        assert story.setting is None

    async def test_blank_fields_become_none(self, async_session: AsyncSession) -> None:
        story = await create_story(async_session, USER_ID, "Text", title="", tags="")
        assert story.title is None
        assert story.tags is None
        assert story.date == date.today()

    @pytest.mark.parametrize("text", ["", "  \n "])
    async def test_requires_text(self, async_session: AsyncSession, text: str) -> None:
        """A story needs content."""
        with pytest.raises(ValidationError):
            await create_story(async_session, USER_ID, text)


class TestListStories:
    """Tests for list_stories."""

    @pytest.fixture
    async def stories(self, async_session: AsyncSession) -> list[Story]:
        items = [
            Story(id="s1", user_id=USER_ID, title="Bravo", date=date(2024, 1, 2), freeform_text="b"),
            Story(id="s2", user_id=USER_ID, title="Alpha", date=date(2024, 3, 1), freeform_text="a"),
            Story(id="s3", user_id=USER_ID, title="Charlie", date=date(2023, 5, 5), freeform_text="c"),
            Story(id="s4", user_id="other", title="Zulu", date=date(2024, 6, 1), freeform_text="z"),
        ]
        for item in items:
            async_session.add(item)
        await async_session.commit()
        return items

    async def test_default_newest_first(
        self, async_session: AsyncSession, stories: list[Story]
    ) -> None:
        """Defaults to date descending, own stories only."""
        result = await list_stories(async_session, USER_ID)
        assert [s.id for s in result] == ["s2", "s1", "s3"]

    async def test_title_ascending(
        self, async_session: AsyncSession, stories: list[Story]
    ) -> None:
        result = await list_stories(async_session, USER_ID, sort_by="title", order="asc")
        assert [s.title for s in result] == ["Alpha", "Bravo", "Charlie"]

    async def test_empty(self, async_session: AsyncSession) -> None:
        assert await list_stories(async_session, USER_ID) == []


class TestDeleteStory:
    """Tests for delete_story."""

    async def test_deletes_details_too(
        self, async_session: AsyncSession, sample_story: Story
    ) -> None:
        """Details go away with their story."""
        await save_analysis(async_session, sample_story.id, AnalysisResult(hook="A"))

        await delete_story(async_session, sample_story.id, USER_ID)

        assert await async_session.get(Story, sample_story.id) is None
        assert await get_details(async_session, sample_story.id) is None

    async def test_database_cascade(
        self, async_session: AsyncSession, sample_story: Story
    ) -> None:
        """Deleting a story row directly also removes its details row."""
        await save_analysis(async_session, sample_story.id, AnalysisResult(hook="A"))

        await async_session.execute(
            text("DELETE FROM stories WHERE id = :id"), {"id": sample_story.id}
        )
        await async_session.commit()

        remaining = await async_session.execute(
            text("SELECT COUNT(*) FROM story_details WHERE story_id = :id"),
            {"id": sample_story.id},
        )
        assert remaining.scalar_one() == 0

    async def test_other_user_cannot_delete(
        self, async_session: AsyncSession, sample_story: Story
    ) -> None:
        with pytest.raises(StoryNotFoundError):
            await delete_story(async_session, sample_story.id, "intruder")
        assert await get_story(async_session, sample_story.id, USER_ID) is sample_story
