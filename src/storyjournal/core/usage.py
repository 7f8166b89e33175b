"""LLM usage tracking for cost estimation."""

import logging
import threading
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Approximate gpt-3.5-turbo price per 1K tokens
DEFAULT_UNIT_RATE = 0.001


@dataclass
class UsageStats:
    """Usage snapshot."""

    total_tokens_used: int = 0
    total_api_calls: int = 0
    estimated_cost: float = 0.0


class UsageTracker:
    """Counts tokens and calls for the lifetime of the process.

    One instance is owned by the app and shared by concurrent analysis runs,
    so every read and write goes through the lock.
    """

    def __init__(self, unit_rate: float = DEFAULT_UNIT_RATE) -> None:
        self.unit_rate = unit_rate
        self._lock = threading.Lock()
        self._total_tokens = 0
        self._total_calls = 0

    def track(self, tokens_used: int) -> None:
        """Record one API call."""
        if tokens_used < 0:
            msg = f"tokens_used must be >= 0, got {tokens_used}"
            raise ValueError(msg)

        with self._lock:
            self._total_tokens += tokens_used
            self._total_calls += 1
            calls = self._total_calls

        logger.info(f"API call #{calls}, tokens: {tokens_used}")

    def stats(self) -> UsageStats:
        """Current totals and estimated cost."""
        with self._lock:
            tokens = self._total_tokens
            calls = self._total_calls

        return UsageStats(
            total_tokens_used=tokens,
            total_api_calls=calls,
            estimated_cost=tokens / 1000 * self.unit_rate,
        )

    def reset(self) -> None:
        with self._lock:
            self._total_tokens = 0
            self._total_calls = 0
