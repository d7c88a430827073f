"""Collection reconciler.

Merges session decisions, persisted liked/disliked/favorite lists and the
favorite membership set into three de-duplicated display groups, then
applies client-side filters and sorting.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Literal

from reelswipe.core.cards import card_fields, card_key
from reelswipe.core.contracts import MovieCard
from reelswipe.logging import get_logger

logger = get_logger(__name__)

SortOrder = Literal["title", "year_asc", "year_desc", "rating_asc", "rating_desc"]
SORT_ORDERS: tuple[str, ...] = ("title", "year_asc", "year_desc", "rating_asc", "rating_desc")

SET_CATEGORIES = ("genres", "age_ratings", "keywords", "languages", "directors")
RANGE_CATEGORIES = ("year", "rating")


@dataclass(frozen=True)
class DisplayCard:
    """One rendered grid entry.

    Entries without a valid catalog ID keep tmdb_id=None and card=None and
    get an index-based key.
    """

    key: str
    tmdb_id: int | None
    title: str
    card: MovieCard | None = None
    genres: tuple[str, ...] = ()
    year: int | None = None
    vote_average: float | None = None
    age_rating: str | None = None
    language: str | None = None
    director: str | None = None
    keywords: tuple[str, ...] = ()

    @classmethod
    def from_card(cls, card: MovieCard) -> "DisplayCard":
        return cls(
            key=card_key(0, card.tmdb_id, card.title),
            tmdb_id=card.tmdb_id,
            title=card.title,
            card=card,
            genres=card.genres,
            year=card.release_year,
            vote_average=card.vote_average,
            age_rating=card.age_rating,
            language=card.language,
            director=card.director,
            keywords=card.keywords,
        )

    @classmethod
    def from_raw(cls, raw: Any, index: int) -> "DisplayCard":
        """Build from a raw persisted entry, valid ID or not."""
        if isinstance(raw, MovieCard):
            return cls.from_card(raw)
        fields = card_fields(raw) if isinstance(raw, dict) else {"tmdb_id": None, "title": ""}
        tmdb_id = fields["tmdb_id"]
        if tmdb_id is not None:
            return cls.from_card(MovieCard(**fields))
        title = fields.get("title") or "Untitled"
        release = fields.get("release_date") or ""
        return cls(
            key=card_key(index, None, title),
            tmdb_id=None,
            title=title,
            genres=fields.get("genres", ()),
            year=int(release[:4]) if release[:4].isdigit() else None,
            vote_average=fields.get("vote_average"),
            age_rating=fields.get("age_rating"),
            language=fields.get("language"),
            director=fields.get("director"),
            keywords=fields.get("keywords", ()),
        )


@dataclass(frozen=True)
class DisplayGroups:
    favorites: tuple[DisplayCard, ...] = ()
    liked: tuple[DisplayCard, ...] = ()
    disliked: tuple[DisplayCard, ...] = ()

    def all(self) -> tuple[DisplayCard, ...]:
        return self.favorites + self.liked + self.disliked

    def keys(self) -> list[str]:
        return [entry.key for entry in self.all()]

    def ids(self, group: str) -> list[int]:
        return [e.tmdb_id for e in getattr(self, group) if e.tmdb_id is not None]


@dataclass
class CollectionFilters:
    """Active filter predicates: AND across categories, OR within one."""

    genres: set[str] = field(default_factory=set)
    age_ratings: set[str] = field(default_factory=set)
    keywords: set[str] = field(default_factory=set)
    languages: set[str] = field(default_factory=set)
    directors: set[str] = field(default_factory=set)
    year_range: tuple[int, int] | None = None
    rating_range: tuple[float, float] | None = None

    @property
    def active(self) -> bool:
        return (
            any(getattr(self, name) for name in SET_CATEGORIES)
            or self.year_range is not None
            or self.rating_range is not None
        )

    def toggle(self, category: str, value: str) -> None:
        """Add or remove a value; toggling twice restores the previous state."""
        if category not in SET_CATEGORIES:
            raise ValueError(f"Unknown filter category: {category}")
        getattr(self, category).symmetric_difference_update({value})

    def set_range(self, category: str, bounds: tuple[float, float] | None) -> None:
        if category not in RANGE_CATEGORIES:
            raise ValueError(f"Unknown range filter: {category}")
        if bounds is not None:
            low, high = bounds
            bounds = (low, high) if low <= high else (high, low)
        setattr(self, f"{category}_range", bounds)

    def clear(self) -> None:
        for name in SET_CATEGORIES:
            getattr(self, name).clear()
        self.year_range = None
        self.rating_range = None

    def matches(self, entry: DisplayCard) -> bool:
        if self.genres and not self.genres.intersection(entry.genres):
            return False
        if self.keywords and not self.keywords.intersection(entry.keywords):
            return False
        if self.age_ratings and entry.age_rating not in self.age_ratings:
            return False
        if self.languages and entry.language not in self.languages:
            return False
        if self.directors and entry.director not in self.directors:
            return False
        if self.year_range is not None:
            if entry.year is None or not self.year_range[0] <= entry.year <= self.year_range[1]:
                return False
        if self.rating_range is not None:
            rating = entry.vote_average
            if rating is None or not self.rating_range[0] <= rating <= self.rating_range[1]:
                return False
        return True


def _sort_key(order: str):
    if order == "title":
        return lambda e: e.title.casefold()
    if order in ("year_asc", "year_desc"):
        sign = 1 if order == "year_asc" else -1
        return lambda e: (e.year is None, sign * (e.year or 0), e.title.casefold())
    sign = 1 if order == "rating_asc" else -1
    return lambda e: (e.vote_average is None, sign * (e.vote_average or 0.0), e.title.casefold())


class CollectionReconciler:
    """Builds the favorites / liked / disliked grids.

    Display lists are recomputed from the unfiltered sources on every call,
    so filters never drop entries permanently.
    """

    def __init__(self) -> None:
        self.session_liked: list[MovieCard] = []
        self.session_disliked: list[MovieCard] = []
        self.persisted_liked: list[Any] = []
        self.persisted_disliked: list[Any] = []
        self.persisted_favorites: list[Any] = []
        self.favorite_ids: set[str] | None = None
        self.filters = CollectionFilters()
        self.sort_order: str | None = None

    def load(
        self,
        session_liked: Iterable[MovieCard] | None = None,
        session_disliked: Iterable[MovieCard] | None = None,
        persisted_liked: Iterable[Any] | None = None,
        persisted_disliked: Iterable[Any] | None = None,
        persisted_favorites: Iterable[Any] | None = None,
        favorite_ids: Iterable[str] | None = None,
    ) -> None:
        """Replace any of the source inputs."""
        if session_liked is not None:
            self.session_liked = list(session_liked)
        if session_disliked is not None:
            self.session_disliked = list(session_disliked)
        if persisted_liked is not None:
            self.persisted_liked = list(persisted_liked)
        if persisted_disliked is not None:
            self.persisted_disliked = list(persisted_disliked)
        if persisted_favorites is not None:
            self.persisted_favorites = list(persisted_favorites)
        if favorite_ids is not None:
            self.favorite_ids = {str(i) for i in favorite_ids}

    def unfiltered_groups(self) -> DisplayGroups:
        index = 0

        def entries(source: Iterable[Any]) -> list[DisplayCard]:
            nonlocal index
            built = []
            for raw in source:
                built.append(DisplayCard.from_raw(raw, index))
                index += 1
            return built

        session_liked = entries(self.session_liked)
        session_disliked = entries(self.session_disliked)
        persisted_liked = entries(self.persisted_liked)
        persisted_disliked = entries(self.persisted_disliked)
        persisted_favorites = entries(self.persisted_favorites)

        session_liked_ids = {e.tmdb_id for e in session_liked}
        session_disliked_ids = {e.tmdb_id for e in session_disliked}

        # Session decisions are newer than server lists
        disliked_ids = session_disliked_ids | {
            e.tmdb_id
            for e in persisted_disliked
            if e.tmdb_id is not None and e.tmdb_id not in session_liked_ids
        }

        if self.favorite_ids is not None:
            favorite_keys = set(self.favorite_ids)
        else:
            favorite_keys = {str(e.tmdb_id) for e in persisted_favorites if e.tmdb_id is not None}

        favorites: list[DisplayCard] = []
        liked: list[DisplayCard] = []
        disliked: list[DisplayCard] = []
        seen: set[int] = set()

        def place(entry: DisplayCard, group: list[DisplayCard]) -> None:
            if entry.tmdb_id is None:
                group.append(entry)
                return
            if entry.tmdb_id in seen:
                return
            seen.add(entry.tmdb_id)
            group.append(entry)

        for entry in session_disliked:
            place(entry, disliked)
        for entry in persisted_disliked:
            if entry.tmdb_id is None or entry.tmdb_id in disliked_ids:
                place(entry, disliked)

        for entry in session_liked + persisted_liked:
            if entry.tmdb_id is not None and entry.tmdb_id in disliked_ids:
                continue
            if entry.tmdb_id is not None and str(entry.tmdb_id) in favorite_keys:
                place(entry, favorites)
            else:
                place(entry, liked)

        for entry in persisted_favorites:
            if entry.tmdb_id is None:
                place(entry, favorites)
            elif entry.tmdb_id not in disliked_ids and str(entry.tmdb_id) in favorite_keys:
                place(entry, favorites)

        return DisplayGroups(tuple(favorites), tuple(liked), tuple(disliked))

    def groups(self) -> DisplayGroups:
        """Filtered and sorted display groups."""
        unfiltered = self.unfiltered_groups()
        return DisplayGroups(
            favorites=self._present(unfiltered.favorites),
            liked=self._present(unfiltered.liked),
            disliked=self._present(unfiltered.disliked),
        )

    def _present(self, entries: tuple[DisplayCard, ...]) -> tuple[DisplayCard, ...]:
        shown = [e for e in entries if self.filters.matches(e)] if self.filters.active else list(entries)
        if self.sort_order is not None:
            shown.sort(key=_sort_key(self.sort_order))
        return tuple(shown)

    def toggle(self, category: str, value: str) -> DisplayGroups:
        self.filters.toggle(category, value)
        return self.groups()

    def set_range(self, category: str, bounds: tuple[float, float] | None) -> DisplayGroups:
        self.filters.set_range(category, bounds)
        return self.groups()

    def clear_filters(self) -> DisplayGroups:
        self.filters.clear()
        return self.groups()

    def set_sort(self, order: str | None) -> DisplayGroups:
        if order is not None and order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {order}")
        self.sort_order = order
        return self.groups()

    def filter_options(self) -> dict[str, Any]:
        """Values available for each filter, from the unfiltered groups."""
        entries = self.unfiltered_groups().all()
        years = [e.year for e in entries if e.year is not None]
        ratings = [e.vote_average for e in entries if e.vote_average is not None]
        return {
            "genres": sorted({g for e in entries for g in e.genres}),
            "age_ratings": sorted({e.age_rating for e in entries if e.age_rating}),
            "keywords": sorted({k for e in entries for k in e.keywords}),
            "languages": sorted({e.language for e in entries if e.language}),
            "directors": sorted({e.director for e in entries if e.director}),
            "year": (min(years), max(years)) if years else None,
            "rating": (min(ratings), max(ratings)) if ratings else None,
        }
