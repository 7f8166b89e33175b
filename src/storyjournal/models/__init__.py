"""Data models."""

from storyjournal.models.database import get_session, init_db
from storyjournal.models.story import Story
from storyjournal.models.story_details import StoryDetails

__all__ = [
    "Story",
    "StoryDetails",
    "get_session",
    "init_db",
]
