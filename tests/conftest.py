"""Test configuration and fixtures."""

import asyncio
from collections.abc import AsyncGenerator
from datetime import date

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from storyjournal.api.deps import get_analysis_service
from storyjournal.core.analysis import StoryAnalysisService
from storyjournal.core.usage import UsageTracker
from storyjournal.errors import AnalysisError
from storyjournal.llm.base import ChatCompletion, LLMConfig, LLMProvider, Message, TokenUsage
from storyjournal.main import app
from storyjournal.models.database import enable_sqlite_foreign_keys, get_session
from storyjournal.models.story import Story

USER_ID = "user-001"
AUTH_HEADERS = {"X-User-Id": USER_ID, "X-User-Email": "sam@example.com"}

ANALYSIS_REPLY = """```json
{
  "characters": ["Sam", "Unclear", "Grandma"],
  "hook": "The night the power went out.",
  "beginning": "Sam was home alone.",
  "middle": "Grandma arrived with candles.",
  "end": "They told stories until dawn.",
  "outcome": "Sam stopped fearing the dark.",
  "lesson_or_takeaway": "Unclear",
  "turning_point": "  Grandma's knock at the door.  "
}
```"""


class FakeProvider(LLMProvider):
    """Scripted LLM provider."""

    def __init__(
        self,
        content: str = ANALYSIS_REPLY,
        total_tokens: int | None = 120,
        error: AnalysisError | None = None,
    ) -> None:
        super().__init__(LLMConfig(model="test-model"))
        self.content = content
        self.total_tokens = total_tokens
        self.error = error
        self.calls: list[list[Message]] = []

    async def chat(self, messages: list[Message]) -> ChatCompletion:
        self.calls.append(messages)
        # yield to the loop so concurrent runs interleave
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        usage = (
            TokenUsage(total_tokens=self.total_tokens)
            if self.total_tokens is not None
            else None
        )
        return ChatCompletion(content=self.content, usage=usage)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """In-memory database session factory."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def async_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """In-memory database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def tracker() -> UsageTracker:
    return UsageTracker()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest_asyncio.fixture
async def sample_story(async_session: AsyncSession) -> Story:
    """A saved story."""
    story = Story(
        id="story-001",
        user_id=USER_ID,
        title="Blackout",
        date=date(2024, 3, 1),
        freeform_text="The power went out and Grandma came over with candles.",
    )
    async_session.add(story)
    await async_session.commit()
    await async_session.refresh(story)
    return story


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    provider: FakeProvider,
    tracker: UsageTracker,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the in-memory database and the fake provider."""

    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    async def override_get_analysis_service(
        session: AsyncSession = Depends(get_session),
    ) -> StoryAnalysisService:
        return StoryAnalysisService(session, tracker, provider=provider)

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_analysis_service] = override_get_analysis_service
    previous_tracker = app.state.usage_tracker
    app.state.usage_tracker = tracker

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.usage_tracker = previous_tracker
