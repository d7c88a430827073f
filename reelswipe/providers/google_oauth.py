"""Google sign-in: consent URL, code exchange and userinfo."""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from reelswipe.logging import get_logger

logger = get_logger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
DEFAULT_TIMEOUT = 15.0
SCOPES = "openid email profile"


class GoogleAuthError(Exception):
    """Raised when the code exchange or profile lookup fails."""


@dataclass
class GoogleProfile:
    google_id: str
    email: str | None
    display_name: str
    photo: str | None


class GoogleOAuthClient:
    """Thin client over Google's OAuth 2.0 endpoints."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout
        self._transport = transport

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": SCOPES,
            "state": state,
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> GoogleProfile:
        """Exchange an authorization code and load the user's profile.

        Raises:
            GoogleAuthError: On any failed step
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                token_response = await client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                if token_response.status_code != 200:
                    raise GoogleAuthError(f"Token exchange failed: HTTP {token_response.status_code}")
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise GoogleAuthError("Token exchange returned no access token")

                info_response = await client.get(
                    GOOGLE_USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                if info_response.status_code != 200:
                    raise GoogleAuthError(f"Userinfo failed: HTTP {info_response.status_code}")
                info: dict[str, Any] = info_response.json()
            except httpx.HTTPError as e:
                raise GoogleAuthError(f"Google request failed: {e}") from e

        if not info.get("sub"):
            raise GoogleAuthError("Userinfo has no subject")

        return GoogleProfile(
            google_id=str(info["sub"]),
            email=info.get("email"),
            display_name=info.get("name") or info.get("email") or "Movie fan",
            photo=info.get("picture"),
        )
