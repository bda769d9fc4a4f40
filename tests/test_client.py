import asyncio
import json

import aiohttp
import pytest

from surge.api.client import YouTubeAPIClient
from surge.exceptions import BackendError
from surge.models.config import SurgeConfig
from surge.storage.cache import CacheManager


def _item(video_id, title="Song", thumbnails=None):
    return {
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {"title": title, "thumbnails": thumbnails or {}},
    }


@pytest.fixture
def client():
    config = SurgeConfig(api_key="KEY", max_results=10, config_path="/cfg")
    return YouTubeAPIClient(config)


class TestParsing:
    def test_parse_item(self):
        item = _item(
            "abc",
            "Rock &amp; Roll",
            {"default": {"url": "http://d"}, "high": {"url": "http://h"}},
        )

        result = YouTubeAPIClient.parse_item(item)

        assert result.id == "abc"
        assert result.title == "Rock & Roll"
        assert result.thumbnail == "http://h"

    def test_items_without_video_id_are_skipped(self, client):
        response = {
            "items": [
                {"id": {"kind": "youtube#channel", "channelId": "c"}, "snippet": {}},
                _item("v1"),
            ]
        }

        assert [r.id for r in client.parse_results(response)] == ["v1"]

    def test_missing_title_and_thumbnail(self):
        result = YouTubeAPIClient.parse_item({"id": {"videoId": "v"}})

        assert result.title == "Unknown Title"
        assert result.thumbnail is None


@pytest.mark.asyncio
class TestRequests:
    async def test_search_preserves_order_and_passes_query(self, client, monkeypatch):
        seen = {}

        async def fake_api_call(endpoint, **params):
            seen.update(params, endpoint=endpoint)
            return {"items": [_item("b"), _item("a"), _item("c")]}

        monkeypatch.setattr(client, "api_call", fake_api_call)

        results = await client.search("daft punk")

        assert [r.id for r in results] == ["b", "a", "c"]
        assert seen["q"] == "daft punk"
        assert seen["maxResults"] == 10
        assert seen["endpoint"] == "search"

    async def test_related_drops_the_seed(self, client, monkeypatch):
        async def fake_api_call(endpoint, **params):
            assert params["relatedToVideoId"] == "seed"
            return {"items": [_item("seed"), _item("r1"), _item("r2")]}

        monkeypatch.setattr(client, "api_call", fake_api_call)

        assert [r.id for r in await client.find_related("seed")] == ["r1", "r2"]

    async def test_cached_response_skips_network(self, tmp_path):
        cache = CacheManager(tmp_path)
        config = SurgeConfig(api_key="KEY", config_path="/cfg")
        client = YouTubeAPIClient(config, cache=cache)
        params = {"part": "snippet", "q": "x"}
        cache.set(YouTubeAPIClient._cache_key("search", params), {"items": []})

        assert await client.api_call("search", **params) == {"items": []}
        assert client._session is None


def test_error_messages():
    quota = YouTubeAPIClient._error_message(
        403, {"error": {"message": "quotaExceeded"}}
    )
    assert "quota or key problem" in quota
    assert "quotaExceeded" in quota
    assert YouTubeAPIClient._error_message(500, "oops") == (
        "Search API error 500: no details"
    )


def test_download_url(client):
    assert client.gen_download_url("abc") == "https://www.youtube.com/watch?v=abc"




class FakeResponse:
    def __init__(self, status, text):
        self.status = status
        self.text = text

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def json(self, content_type="application/json"):
        return json.loads(self.text)


class FakeSession:
    """Answers every GET with one canned response, or raises `error`."""

    closed = False

    def __init__(self, status=200, text="{}", error=None):
        self.status = status
        self.text = text
        self.error = error
        self.requests = []

    def get(self, url, params=None):
        self.requests.append((url, params))
        if self.error:
            raise self.error
        return FakeResponse(self.status, self.text)


@pytest.mark.asyncio
class TestApiCallFailures:
    async def test_success_adds_key_and_returns_body(self, client):
        client._session = FakeSession(text='{"items": []}')

        assert await client.api_call("search", q="x") == {"items": []}
        url, params = client._session.requests[0]
        assert url == YouTubeAPIClient.BASE_URL + "search"
        assert params == {"q": "x", "key": "KEY"}

    async def test_error_status_carries_api_message(self, client):
        client._session = FakeSession(
            status=403, text='{"error": {"message": "quotaExceeded"}}'
        )

        with pytest.raises(BackendError, match="quota or key problem.*quotaExceeded"):
            await client.api_call("search", q="x")

    async def test_not_found_status(self, client):
        client._session = FakeSession(status=404, text='{"error": {"message": "gone"}}')

        with pytest.raises(BackendError, match="Search API error 404: gone"):
            await client.api_call("search", q="x")

    @pytest.mark.parametrize(
        "error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()]
    )
    async def test_transport_failures(self, client, error):
        client._session = FakeSession(error=error)

        with pytest.raises(BackendError, match="Could not reach the search API"):
            await client.api_call("search", q="x")

    async def test_non_json_body(self, client):
        client._session = FakeSession(text="<html>bad gateway</html>")

        with pytest.raises(BackendError, match="Could not reach the search API"):
            await client.api_call("search", q="x")

    async def test_non_object_body(self, client):
        client._session = FakeSession(text="[1, 2, 3]")

        with pytest.raises(BackendError, match="Unexpected response from search"):
            await client.api_call("search", q="x")

    async def test_failures_are_not_cached(self, tmp_path):
        config = SurgeConfig(api_key="KEY", config_path="/cfg")
        cache = CacheManager(tmp_path)
        client = YouTubeAPIClient(config, cache=cache)
        client._session = FakeSession(status=500, text="{}")

        with pytest.raises(BackendError):
            await client.api_call("search", q="x")

        assert list(cache.cache_dir.glob("*.json")) == []
