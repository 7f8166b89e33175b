"""Story model."""

import json
from datetime import date as date_type
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Story(SQLModel, table=True):
    """A freeform story captured by a user."""

    __tablename__ = "stories"  # type: ignore[assignment]

    id: str = Field(default_factory=_new_id, primary_key=True)
    user_id: str = Field(index=True, description="Owner")
    title: str | None = Field(default=None)
    date: date_type = Field(default_factory=date_type.today, description="When it happened")
    setting: str | None = Field(default=None)
    tags: str | None = Field(default=None, description="Tags (JSON array)")
    freeform_text: str = Field(description="Raw story text")
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    def tag_list(self) -> list[str]:
        return json.loads(self.tags) if self.tags else []

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "date": self.date.isoformat(),
            "setting": self.setting,
            "tags": self.tag_list(),
            "freeform_text": self.freeform_text,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
