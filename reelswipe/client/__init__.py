"""HTTP client for the ReelSwipe API, used by the session core."""

from reelswipe.client.api_client import (
    ApiClient,
    ApiConnectionError,
    ApiError,
    ServiceUnavailableError,
)

__all__ = ["ApiClient", "ApiError", "ApiConnectionError", "ServiceUnavailableError"]
