"""OpenAI-compatible chat completion provider."""

import logging
from typing import Any

import openai
from openai import AsyncOpenAI

from storyjournal.errors import (
    AnalysisError,
    NetworkError,
    RateLimitedError,
    UnauthorizedError,
    UpstreamError,
)
from storyjournal.llm.base import ChatCompletion, LLMConfig, LLMProvider, Message, TokenUsage

logger = logging.getLogger(__name__)


def map_status_error(status_code: int) -> AnalysisError:
    """Map a non-2xx gateway status to an error kind."""
    if status_code in (401, 403):
        return UnauthorizedError()
    if status_code == 429:
        return RateLimitedError()
    if status_code >= 500:
        return UpstreamError()
    return NetworkError()


class OpenAIProvider(LLMProvider):
    """OpenAI API provider (works with any OpenAI-compatible gateway)."""

    def __init__(
        self,
        config: LLMConfig,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
    ) -> None:
        super().__init__(config)
        # Single attempt; retrying is left to the caller
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    async def chat(self, messages: list[Message]) -> ChatCompletion:
        """Send one chat request and return the full reply."""
        openai_messages: list[dict[str, Any]] = [
            {"role": m.role, "content": m.content} for m in messages
        ]

        try:
            response = await self.client.chat.completions.create(
                model=self.config.model,
                messages=openai_messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
        except openai.APIStatusError as e:
            logger.warning(f"Gateway returned HTTP {e.status_code}: {e.message}")
            raise map_status_error(e.status_code) from e
        except openai.APIConnectionError as e:
            logger.warning(f"Gateway unreachable: {e}")
            raise NetworkError() from e
        except openai.APIError as e:
            logger.warning(f"Malformed gateway response: {e}")
            raise NetworkError() from e

        choices = getattr(response, "choices", None)
        choice = choices[0] if choices else None
        message = getattr(choice, "message", None)
        if message is None:
            logger.warning("Gateway response has no message")
            raise NetworkError()

        content = getattr(message, "content", None)
        if content is not None and not isinstance(content, str):
            logger.warning("Gateway response content is not text")
            raise NetworkError()

        usage = self._usage(getattr(response, "usage", None))
        return ChatCompletion(content=content or "", usage=usage)

    @staticmethod
    def _usage(usage: Any) -> TokenUsage | None:
        if usage is None:
            return None
        total_tokens = getattr(usage, "total_tokens", None)
        if (
            not isinstance(total_tokens, int)
            or isinstance(total_tokens, bool)
            or total_tokens < 0
        ):
            logger.warning(f"Gateway reported unusable token usage: {total_tokens!r}")
            raise NetworkError()
        return TokenUsage(total_tokens=total_tokens)
