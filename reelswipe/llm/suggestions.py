"""AI movie suggestions from user preferences."""

from dataclasses import dataclass
from typing import Any

from reelswipe.core.contracts import UserPreferences
from reelswipe.llm.llm_adapter import LLMError, generate_text, parse_json_response
from reelswipe.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are a film curator. Recommend real, released feature films that fit "
    "the viewer's preferences. Reply with JSON only, no prose, in the form "
    '{"movies": [{"title": str, "year": int, "matchScore": int 0-100, '
    '"matchReason": str}]}. Keep each matchReason under 25 words.'
)

SLIDER_LABELS = {
    "mood_intensity": "Mood intensity",
    "humor_level": "Humor",
    "violence_level": "Violence",
    "romance_level": "Romance",
    "complexity_level": "Plot complexity",
}


@dataclass
class MovieSuggestion:
    title: str
    year: int | None = None
    match_score: float | None = None
    match_reason: str | None = None


def build_prompt(prefs: UserPreferences, count: int, exclude_titles: list[str] | None = None) -> str:
    """Describe the preferences in plain text for the model."""
    lines = [f"Recommend {count} movies."]
    if prefs.description.strip():
        lines.append(f"What I'm in the mood for: {prefs.description.strip()}")
    lines.append(f"Release years: {prefs.year_range[0]}-{prefs.year_range[1]}")
    lines.append(f"Runtime: {prefs.runtime_range[0]}-{prefs.runtime_range[1]} minutes")
    lines.append(f"TMDB rating: {prefs.rating_range[0]}-{prefs.rating_range[1]}")
    if prefs.age_rating != "Any":
        lines.append(f"Age rating: {prefs.age_rating} or milder")
    lines.append(f"Language: {prefs.language}")

    for field_name, label in SLIDER_LABELS.items():
        lines.append(f"{label}: {getattr(prefs, field_name)}/10")

    liked = [name for name, weight in prefs.genres.items() if weight >= 7]
    avoided = [name for name, weight in prefs.genres.items() if weight <= 3]
    if liked:
        lines.append(f"Favourite genres: {', '.join(liked)}")
    if avoided:
        lines.append(f"Genres to avoid: {', '.join(avoided)}")
    if exclude_titles:
        lines.append(f"Do not include: {', '.join(exclude_titles[:30])}")
    return "\n".join(lines)


def _parse_item(item: Any) -> MovieSuggestion | None:
    if not isinstance(item, dict):
        return None
    title = item.get("title")
    if not isinstance(title, str) or not title.strip():
        return None
    year = item.get("year")
    score = item.get("matchScore", item.get("match_score"))
    reason = item.get("matchReason", item.get("match_reason"))
    return MovieSuggestion(
        title=title.strip(),
        year=year if isinstance(year, int) and not isinstance(year, bool) else None,
        match_score=float(score) if isinstance(score, (int, float)) and not isinstance(score, bool) else None,
        match_reason=reason.strip() if isinstance(reason, str) and reason.strip() else None,
    )


async def suggest_movies(
    prefs: UserPreferences,
    count: int,
    exclude_titles: list[str] | None = None,
) -> list[MovieSuggestion]:
    """Ask the configured LLM for movie suggestions.

    Raises:
        LLMDisabledError: If the LLM is not configured
        LLMError: On API failure or an unusable reply
    """
    text = await generate_text(
        system_prompt=SYSTEM_PROMPT,
        user_prompt=build_prompt(prefs, count, exclude_titles),
        max_tokens=150 + 80 * count,
        temperature=0.8,
    )
    data = parse_json_response(text)
    items = data.get("movies") if isinstance(data, dict) else data
    if not isinstance(items, list):
        raise LLMError("Model reply has no movie list")

    suggestions = [s for s in (_parse_item(item) for item in items) if s is not None]
    logger.info(f"LLM suggested {len(suggestions)} movies")
    return suggestions[:count]
