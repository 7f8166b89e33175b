"""StoryDetails model."""

import json
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlmodel import Field, SQLModel

from storyjournal.models.story import utcnow


class StoryDetails(SQLModel, table=True):
    """Structured story elements, one row per story."""

    __tablename__ = "story_details"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True)
    story_id: str = Field(
        sa_column=Column(
            String,
            ForeignKey("stories.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
    )
    characters: str = Field(default="[]", description="Characters (JSON array)")
    hook: str = Field(default="")
    beginning: str = Field(default="")
    middle: str = Field(default="")
    end: str = Field(default="")
    outcome: str = Field(default="")
    lesson_or_takeaway: str = Field(default="")
    turning_point: str = Field(default="")
    generated_by_ai: bool = Field(default=False, description="Produced by the analyzer")
    user_edited: bool = Field(default=False, description="Hand-edited since last analysis")
    model_used: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    def character_list(self) -> list[str]:
        return json.loads(self.characters) if self.characters else []

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "story_id": self.story_id,
            "characters": self.character_list(),
            "hook": self.hook,
            "beginning": self.beginning,
            "middle": self.middle,
            "end": self.end,
            "outcome": self.outcome,
            "lesson_or_takeaway": self.lesson_or_takeaway,
            "turning_point": self.turning_point,
            "generated_by_ai": self.generated_by_ai,
            "user_edited": self.user_edited,
            "model_used": self.model_used,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
