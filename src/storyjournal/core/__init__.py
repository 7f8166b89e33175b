"""Core business logic."""

from storyjournal.core.analysis import (
    StoryAnalysisService,
    StoryWithDetails,
    analyze_story,
    fetch_story_with_details,
    story_needs_analysis,
    update_story_details,
)
from storyjournal.core.usage import UsageStats, UsageTracker

__all__ = [
    "StoryAnalysisService",
    "StoryWithDetails",
    "UsageStats",
    "UsageTracker",
    "analyze_story",
    "fetch_story_with_details",
    "story_needs_analysis",
    "update_story_details",
]
