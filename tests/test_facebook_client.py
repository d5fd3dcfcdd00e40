"""Tests for the Facebook Graph API client."""

import httpx
import pytest

from app.services.facebook_client import (
    FacebookAuthError,
    FacebookError,
    FacebookGraphClient,
    FacebookRateLimitError,
)


BASE_URL = "https://graph.test/v18.0"


def _client(handler) -> FacebookGraphClient:
    return FacebookGraphClient("token-123", base_url=BASE_URL, transport=httpx.MockTransport(handler))


class TestGetProfile:
    """Tests for FacebookGraphClient.get_profile."""

    @pytest.mark.asyncio
    async def test_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"id": "1", "name": "Jane Doe"})

        profile = await _client(handler).get_profile()

        assert profile == {"id": "1", "name": "Jane Doe"}
        assert seen["path"] == "/v18.0/me"
        assert seen["params"]["access_token"] == "token-123"
        assert "work" in seen["params"]["fields"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error", [
        (401, FacebookAuthError),
        (403, FacebookAuthError),
        (429, FacebookRateLimitError),
        (500, FacebookError),
    ])
    async def test_error_status(self, status, error):
        client = _client(lambda request: httpx.Response(status, json={"error": {}}))
        with pytest.raises(error):
            await client.get_profile("42")

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        client = _client(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(FacebookError, match="malformed"):
            await client.get_profile()

    @pytest.mark.asyncio
    async def test_network_error_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FacebookError, match="request failed"):
            await _client(handler).get_profile()


class TestGetFriends:
    """Tests for FacebookGraphClient.get_friends."""

    @pytest.mark.asyncio
    async def test_follows_pagination(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params.get("after") == "cursor-2":
                return httpx.Response(200, json={"data": [{"id": "3", "name": "Cy"}]})
            return httpx.Response(200, json={
                "data": [{"id": "1", "name": "Al"}, {"id": "2", "name": "Bea"}],
                "paging": {"next": f"{BASE_URL}/me/friends?access_token=token-123&after=cursor-2"},
            })

        friends = await _client(handler).get_friends()

        assert [f["id"] for f in friends] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_respects_max_friends(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "data": [{"id": str(i)} for i in range(5)],
                "paging": {"next": f"{BASE_URL}/me/friends?after=more"},
            })

        friends = await _client(handler).get_friends(max_friends=3)

        assert len(friends) == 3

    @pytest.mark.asyncio
    async def test_next_page_keeps_token_and_cursor(self):
        """Test that the paging "next" URL is requested with its own query string."""
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.params.get("access_token") != "token-123":
                return httpx.Response(401, json={"error": {"message": "Invalid OAuth access token"}})
            if request.url.params.get("after") == "cursor-2":
                return httpx.Response(200, json={"data": [{"id": "3"}]})
            return httpx.Response(200, json={
                "data": [{"id": "1"}, {"id": "2"}],
                "paging": {"next": f"{BASE_URL}/me/friends?access_token=token-123&limit=100&after=cursor-2"},
            })

        friends = await _client(handler).get_friends()

        assert [f["id"] for f in friends] == ["1", "2", "3"]
        assert len(requests) == 2
        assert requests[1].url.params["after"] == "cursor-2"
