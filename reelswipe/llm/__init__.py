"""LLM module for AI movie suggestions."""

from reelswipe.llm.llm_adapter import (
    LLMDisabledError,
    LLMError,
    LLMRateLimitError,
    generate_text,
    llm_available,
)
from reelswipe.llm.suggestions import MovieSuggestion, suggest_movies

__all__ = [
    "generate_text",
    "llm_available",
    "suggest_movies",
    "MovieSuggestion",
    "LLMDisabledError",
    "LLMError",
    "LLMRateLimitError",
]
