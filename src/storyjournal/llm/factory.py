"""LLM provider factory."""

import logging

from storyjournal.config import Settings
from storyjournal.errors import UnauthorizedError
from storyjournal.llm.base import LLMConfig, LLMProvider
from storyjournal.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)


def create_llm_provider(settings: Settings) -> LLMProvider:
    """Create the LLM provider from settings.

    Raises ``UnauthorizedError`` right away when no credential is configured,
    so no request is ever attempted without one.
    """
    if not settings.llm_configured:
        logger.error("LLM_API_KEY is not set, story analysis is unavailable")
        raise UnauthorizedError()

    config = LLMConfig(
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
    )
    return OpenAIProvider(
        config=config,
        api_key=settings.llm_api_key,
        base_url=settings.llm_base_url,
        timeout=settings.llm_timeout_seconds,
    )
