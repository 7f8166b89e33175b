"""Story analysis pipeline - prompt, gateway call, normalization, write-back."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from storyjournal.config import Settings, get_settings
from storyjournal.core.usage import UsageTracker
from storyjournal.errors import (
    AnalysisError,
    PersistenceError,
    StoryNotFoundError,
    ValidationError,
)
from storyjournal.llm import (
    AnalysisResult,
    LLMProvider,
    build_messages,
    create_llm_provider,
    normalize_response,
)
from storyjournal.llm.analyzer import CONTENT_FIELDS, SCALAR_FIELDS
from storyjournal.models.story import Story, utcnow
from storyjournal.models.story_details import StoryDetails

logger = logging.getLogger(__name__)


class AnalysisStage:
    """Pipeline stages, in order."""

    IDLE = "idle"
    FORMATTING = "formatting"
    CALLING = "calling"
    PARSING = "parsing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class StoryWithDetails:
    """A story and its details row (None until the first analysis lands)."""

    story: Story
    details: StoryDetails | None


def _upsert_insert(session: AsyncSession) -> Any:
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    logger.error(f"Upsert is not supported on {dialect}")
    raise PersistenceError()


async def get_details(
    session: AsyncSession, story_id: str, refresh: bool = False
) -> StoryDetails | None:
    """Load the details row of a story."""
    stmt = select(StoryDetails).where(StoryDetails.story_id == story_id)
    if refresh:
        stmt = stmt.execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def save_analysis(
    session: AsyncSession,
    story_id: str,
    result: AnalysisResult,
    model_used: str | None = None,
) -> StoryDetails:
    """Upsert the details row of a story from an analysis result.

    A fresh analysis always overwrites every content field and resets the row
    to AI-attributed (``generated_by_ai=True``, ``user_edited=False``).
    """
    now = utcnow()
    content: dict[str, Any] = {
        "characters": json.dumps(result.characters, ensure_ascii=False),
        **{name: getattr(result, name) for name in SCALAR_FIELDS},
        "generated_by_ai": True,
        "user_edited": False,
        "model_used": model_used,
        "updated_at": now,
    }

    try:
        insert = _upsert_insert(session)
        stmt = insert(StoryDetails.__table__).values(
            story_id=story_id, created_at=now, **content
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["story_id"],
            set_={name: stmt.excluded[name] for name in content},
        )
        await session.execute(stmt)
        await session.commit()
        details = await get_details(session, story_id, refresh=True)
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Saving analysis for story {story_id} failed: {e}")
        raise PersistenceError() from e

    if details is None:
        logger.error(f"Details row for story {story_id} missing after upsert")
        raise PersistenceError()
    return details


class StoryAnalysisService:
    """Runs the analysis pipeline for one story at a time."""

    def __init__(
        self,
        session: AsyncSession,
        tracker: UsageTracker,
        provider: LLMProvider | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.tracker = tracker
        self.provider = provider
        self.settings = settings or get_settings()
        self.stage = AnalysisStage.IDLE

    def _get_provider(self) -> LLMProvider:
        if self.provider is None:
            self.provider = create_llm_provider(self.settings)
        return self.provider

    async def run(self, story_id: str, story_text: Any) -> StoryDetails:
        """Analyze a story and persist the result.

        Returns the stored row. Raises an ``AnalysisError`` subclass on any
        failure, in which case nothing has been written.
        """
        try:
            return await self._run(story_id, story_text)
        except AnalysisError as e:
            logger.warning(
                f"Analysis of story {story_id} failed at {self.stage}: "
                f"{type(e).__name__}"
            )
            self.stage = AnalysisStage.FAILED
            raise

    async def _run(self, story_id: str, story_text: Any) -> StoryDetails:
        if not isinstance(story_text, str) or not story_text.strip():
            raise ValidationError()

        self.stage = AnalysisStage.FORMATTING
        provider = self._get_provider()
        messages = build_messages(story_text)
        logger.info(f"Analyzing story {story_id} ({len(story_text)} chars)")

        self.stage = AnalysisStage.CALLING
        completion = await provider.chat(messages)

        self.stage = AnalysisStage.PARSING
        result = normalize_response(completion.content)

        if completion.usage is not None:
            self.tracker.track(completion.usage.total_tokens)

        self.stage = AnalysisStage.PERSISTING
        details = await save_analysis(
            self.session, story_id, result, model_used=provider.config.model
        )

        self.stage = AnalysisStage.DONE
        logger.info(f"Story {story_id} analyzed, {len(result.characters)} characters")
        return details


async def analyze_story(
    service: StoryAnalysisService,
    story_id: str,
    story_text: Any,
    user_id: str | None,
    on_error: Callable[[str], None] | None = None,
) -> StoryDetails | None:
    """Run the pipeline for a UI caller.

    Returns the stored details, or None after ``on_error`` has received a
    display-ready message. Never raises an ``AnalysisError``.
    """
    try:
        if not user_id:
            raise ValidationError("You need to be signed in to analyze a story.")
        return await service.run(story_id, story_text)
    except AnalysisError as e:
        if on_error is not None:
            on_error(e.user_message)
        return None


async def update_story_details(
    session: AsyncSession, story_id: str, updates: dict[str, Any]
) -> bool:
    """Apply a manual edit to some content fields of a story's details.

    Marks the row ``user_edited`` and leaves ``generated_by_ai`` alone.
    """
    changes: dict[str, Any] = {}
    for name, value in updates.items():
        if name not in CONTENT_FIELDS:
            logger.warning(f"Ignoring non-editable field {name!r}")
            continue
        if name == "characters":
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                logger.warning("characters must be a list of strings")
                return False
            names = [v.strip() for v in value if v.strip()]
            changes[name] = json.dumps(names, ensure_ascii=False)
        else:
            if not isinstance(value, str):
                logger.warning(f"{name} must be a string")
                return False
            changes[name] = value.strip()

    if not changes:
        return False

    try:
        details = await get_details(session, story_id)
        if details is None:
            return False

        for name, value in changes.items():
            setattr(details, name, value)
        details.user_edited = True
        details.updated_at = utcnow()
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Updating details for story {story_id} failed: {e}")
        return False

    return True


async def fetch_story_with_details(
    session: AsyncSession, story_id: str, user_id: str | None = None
) -> StoryWithDetails:
    """Load a story and its details; details is None when never analyzed."""
    story = await session.get(Story, story_id)
    if story is None or (user_id is not None and story.user_id != user_id):
        raise StoryNotFoundError(story_id)

    details = await get_details(session, story_id)
    return StoryWithDetails(story=story, details=details)


async def story_needs_analysis(session: AsyncSession, story_id: str) -> bool:
    """Whether no analysis has completed for the story yet."""
    return await get_details(session, story_id) is None
