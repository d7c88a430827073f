"""HTTP API for the swipe client."""

from reelswipe.api.router import setup_routers

__all__ = ["setup_routers"]
