"""LLM layer."""

from storyjournal.llm.analyzer import AnalysisResult, normalize_response
from storyjournal.llm.base import ChatCompletion, LLMConfig, LLMProvider, Message, TokenUsage
from storyjournal.llm.factory import create_llm_provider
from storyjournal.llm.openai import OpenAIProvider
from storyjournal.llm.prompts import build_messages, format_story_prompt

__all__ = [
    "AnalysisResult",
    "ChatCompletion",
    "LLMConfig",
    "LLMProvider",
    "Message",
    "OpenAIProvider",
    "TokenUsage",
    "build_messages",
    "create_llm_provider",
    "format_story_prompt",
    "normalize_response",
]
