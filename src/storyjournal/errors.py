"""Error taxonomy for the story analysis pipeline.

Every ``AnalysisError`` carries a ``user_message`` that is safe to show to the
end user. Internal details (provider payloads, SQL errors) go to the log and
never into that message.
"""


class StoryJournalError(Exception):
    """Base class for all application errors."""


class AnalysisError(StoryJournalError):
    """A story analysis run failed."""

    default_message = "An unexpected error occurred while analyzing your story."

    def __init__(self, user_message: str | None = None) -> None:
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class ValidationError(AnalysisError):
    """Bad or missing input, rejected before any network call."""

    default_message = "Story content is required."


class UnauthorizedError(AnalysisError):
    """Missing or rejected gateway credential."""

    default_message = (
        "The story analysis service is not configured. Please contact support."
    )


class RateLimitedError(AnalysisError):
    """The gateway is throttling requests."""

    default_message = "Rate limit exceeded. Please try again in a moment."


class UpstreamError(AnalysisError):
    """The provider answered with a 5xx status."""

    default_message = "The AI service is having trouble. Please try again later."


class NetworkError(AnalysisError):
    """Transport failure, timeout or a malformed response envelope."""

    default_message = (
        "Could not reach the AI service. Check your connection and try again."
    )


class ParseError(AnalysisError):
    """The model reply is not a well-formed JSON object."""

    default_message = "The analysis produced invalid output. Please try again."


class PersistenceError(AnalysisError):
    """Writing the analysis result back failed."""

    default_message = "Failed to save analysis results."


class StoryNotFoundError(StoryJournalError):
    """The story does not exist or belongs to another user."""

    def __init__(self, story_id: str) -> None:
        self.story_id = story_id
        super().__init__(f"Story not found: {story_id}")
