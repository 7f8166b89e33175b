"""Shared API dependencies."""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storyjournal.core.analysis import StoryAnalysisService
from storyjournal.core.usage import UsageTracker
from storyjournal.errors import (
    AnalysisError,
    NetworkError,
    ParseError,
    PersistenceError,
    RateLimitedError,
    UnauthorizedError,
    UpstreamError,
    ValidationError,
)
from storyjournal.models.database import get_session

_STATUS_CODES: dict[type[AnalysisError], int] = {
    ValidationError: 400,
    UnauthorizedError: 503,
    RateLimitedError: 429,
    UpstreamError: 502,
    NetworkError: 502,
    ParseError: 502,
    PersistenceError: 500,
}


def get_usage_tracker(request: Request) -> UsageTracker:
    """Get the app-wide usage tracker."""
    return request.app.state.usage_tracker


async def get_analysis_service(
    session: AsyncSession = Depends(get_session),
    tracker: UsageTracker = Depends(get_usage_tracker),
) -> StoryAnalysisService:
    """Build the analysis service for one request."""
    return StoryAnalysisService(session, tracker)


def to_http_exception(error: AnalysisError) -> HTTPException:
    """Turn an analysis error into a response with its user-safe message."""
    status_code = _STATUS_CODES.get(type(error), 500)
    return HTTPException(status_code=status_code, detail=error.user_message)
