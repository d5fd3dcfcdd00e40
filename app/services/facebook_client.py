"""
Facebook Graph API client.

Only friends who also authorized the app are returned by /me/friends, and
each friend's work, location and education need a separate profile request.
"""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

PROFILE_FIELDS = "id,name,first_name,last_name,email,picture,link,work,education,location"
FRIEND_FIELDS = "id,name"


class FacebookError(Exception):
    """Base exception for Facebook Graph API errors."""
    pass


class FacebookAuthError(FacebookError):
    """Raised when the access token is rejected."""
    pass


class FacebookRateLimitError(FacebookError):
    """Raised when Graph API rate limits are hit."""
    pass


class FacebookGraphClient:
    """
    Minimal async Graph API client.

    API Documentation: https://developers.facebook.com/docs/graph-api
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://graph.facebook.com/v18.0",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            access_token: User access token issued by Facebook login
            base_url: Graph API base URL including version
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def _get(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: dict[str, Any] | None,
    ) -> dict[str, Any]:
        try:
            response = await client.get(url, params=params, timeout=self.timeout)
        except httpx.RequestError as e:
            raise FacebookError(f"Facebook request failed: {e}") from e

        if response.status_code in (401, 403):
            raise FacebookAuthError("Facebook rejected the access token")
        if response.status_code == 429:
            raise FacebookRateLimitError("Facebook rate limit exceeded")
        if response.status_code != 200:
            raise FacebookError(f"Facebook Graph API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise FacebookError("Facebook returned a malformed response") from e
        if not isinstance(data, dict):
            raise FacebookError("Facebook returned a malformed response")
        return data

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    async def get_profile(self, user_id: str = "me") -> dict[str, Any]:
        """
        Fetch one profile document.

        Raises:
            FacebookError: If the request fails
        """
        async with self._client() as client:
            return await self._get(
                client,
                f"{self.base_url}/{user_id}",
                {"access_token": self.access_token, "fields": PROFILE_FIELDS},
            )

    async def get_friends(self, max_friends: int = 500) -> list[dict[str, Any]]:
        """
        Fetch the friend list, following pagination up to ``max_friends``.

        Raises:
            FacebookError: If any page request fails
        """
        friends: list[dict[str, Any]] = []
        url: str | None = f"{self.base_url}/me/friends"
        params: dict[str, Any] | None = {
            "access_token": self.access_token,
            "fields": FRIEND_FIELDS,
            "limit": min(max_friends, 100),
        }

        async with self._client() as client:
            while url and len(friends) < max_friends:
                data = await self._get(client, url, params)
                page = data.get("data")
                if isinstance(page, list):
                    friends.extend(item for item in page if isinstance(item, dict))
                paging = data.get("paging") if isinstance(data.get("paging"), dict) else {}
                url = paging.get("next")
                # The "next" URL already carries the token and cursor
                params = None

        return friends[:max_friends]
