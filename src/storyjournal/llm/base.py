"""LLM abstract base."""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class Message(BaseModel):
    """Chat message."""

    role: str  # "system" | "user" | "assistant"
    content: str


class LLMConfig(BaseModel):
    """LLM configuration."""

    model: str
    temperature: float = 0.3
    max_tokens: int = 1000


class TokenUsage(BaseModel):
    """Token usage reported by the provider."""

    total_tokens: int = Field(default=0, ge=0)


class ChatCompletion(BaseModel):
    """A single completed chat turn."""

    content: str
    usage: TokenUsage | None = None


class LLMProvider(ABC):
    """LLM provider abstract base class."""

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    @abstractmethod
    async def chat(self, messages: list[Message]) -> ChatCompletion:
        """Send one chat request and return the full reply.

        Implementations raise one of ``UnauthorizedError``, ``RateLimitedError``,
        ``UpstreamError`` or ``NetworkError`` and never retry.
        """
        ...
