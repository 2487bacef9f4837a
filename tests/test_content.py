"""
Tests for wabot/services/content.py

The HTTP layer (_get_json) is replaced with an AsyncMock so the payload
shape checks run without network access.
"""

from unittest.mock import AsyncMock

import pytest

from wabot.core.errors import ContentError, ContentNotConfigured
from wabot.services.content import ContentClient


@pytest.fixture
def client():
    return ContentClient(
        openweather_api_key="w-key",
        newsapi_key="n-key",
        unsplash_access_key="u-key",
    )


# =============================================================================
# Missing Key Tests
# =============================================================================

class TestNotConfigured:
    """Keyed APIs refuse to run without their key."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,args", [
        ("weather", ("Accra",)),
        ("news", ()),
        ("search_images", ("cat",)),
    ])
    async def test_missing_key(self, method, args):
        bare = ContentClient()
        bare._get_json = AsyncMock()

        with pytest.raises(ContentNotConfigured):
            await getattr(bare, method)(*args)
        bare._get_json.assert_not_awaited()


# =============================================================================
# Payload Shape Tests
# =============================================================================

class TestPayloads:
    """Parsing of API payloads."""

    @pytest.mark.asyncio
    async def test_joke(self, client):
        client._get_json = AsyncMock(return_value={"setup": "Why?", "punchline": "Because."})
        assert await client.joke() == ("Why?", "Because.")

    @pytest.mark.asyncio
    async def test_joke_missing_field(self, client):
        client._get_json = AsyncMock(return_value={"setup": "Why?"})
        with pytest.raises(ContentError):
            await client.joke()

    @pytest.mark.asyncio
    async def test_weather_passes_key_and_units(self, client):
        client._get_json = AsyncMock(return_value={"main": {"temp": 21}})

        await client.weather("Accra")

        params = client._get_json.call_args.kwargs["params"]
        assert params == {"q": "Accra", "units": "metric", "appid": "w-key"}

    @pytest.mark.asyncio
    async def test_news_limit(self, client):
        client._get_json = AsyncMock(return_value={"articles": [{"title": str(i)} for i in range(9)]})
        assert len(await client.news(limit=5)) == 5

    @pytest.mark.asyncio
    async def test_news_bad_shape(self, client):
        client._get_json = AsyncMock(return_value={"articles": "nope"})
        with pytest.raises(ContentError):
            await client.news()

    @pytest.mark.asyncio
    async def test_image_results_not_list(self, client):
        client._get_json = AsyncMock(return_value={"results": None})
        assert await client.search_images("cat") == []

    @pytest.mark.asyncio
    async def test_close_without_session(self, client):
        await client.close()
