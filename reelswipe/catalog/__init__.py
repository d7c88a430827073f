"""Movie catalog: TMDB-backed search with AI suggestions."""

from reelswipe.catalog.discover import discover_params
from reelswipe.catalog.service import CatalogService, card_to_movie_data, details_to_card

__all__ = ["CatalogService", "discover_params", "details_to_card", "card_to_movie_data"]
