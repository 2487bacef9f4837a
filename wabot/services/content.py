"""
WaBot - Content API Client
==========================

aiohttp client for the third-party APIs behind the fun and utility
commands: jokes, memes, quotes, facts, weather, news, dictionary,
COVID-19 stats and image search.

DESIGN:
    One ClientSession is shared by all calls and created lazily.
    Every failure (network, HTTP status, unexpected body) surfaces as
    ContentError so commands catch a single type. APIs that need a key
    raise ContentNotConfigured when the key is missing.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import aiohttp

from wabot.core.errors import ContentError, ContentNotConfigured
from wabot.core.logger import logger


# =============================================================================
# Endpoints
# =============================================================================

JOKE_URL = "https://official-joke-api.appspot.com/random_joke"
MEME_URL = "https://meme-api.com/gimme"
QUOTE_URL = "https://api.quotable.io/random"
FACT_URL = "https://uselessfacts.jsph.pl/random.json"
WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
NEWS_URL = "https://newsapi.org/v2/top-headlines"
DICTIONARY_URL = "https://api.dictionaryapi.dev/api/v2/entries/en/"
COVID_URL = "https://disease.sh/v3/covid-19/countries/"
UNSPLASH_URL = "https://api.unsplash.com/search/photos"

MAX_DOWNLOAD_BYTES = 15 * 1024 * 1024


# =============================================================================
# Content Client
# =============================================================================

class ContentClient:
    """
    Async client for content APIs.

    Args:
        timeout: Total per-request timeout in seconds.
        openweather_api_key: Key for the weather command.
        newsapi_key: Key for the news command.
        unsplash_access_key: Key for the image command.
        session: Externally owned session (tests).
    """

    def __init__(
        self,
        timeout: float = 10,
        openweather_api_key: Optional[str] = None,
        newsapi_key: Optional[str] = None,
        unsplash_access_key: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self.openweather_api_key = openweather_api_key
        self.newsapi_key = newsapi_key
        self.unsplash_access_key = unsplash_access_key
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # =========================================================================
    # HTTP
    # =========================================================================

    async def _get_json(
        self,
        name: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        session = await self._get_session()
        try:
            async with session.get(url, params=params, headers=headers, timeout=self._timeout) as resp:
                if resp.status >= 400:
                    raise ContentError(f"{name} API returned HTTP {resp.status}")
                return await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Content API Failed", [
                ("API", name),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            raise ContentError(f"{name} API request failed") from e

    @staticmethod
    def _field(data: Any, *keys: str) -> Any:
        """Walk nested keys, raising ContentError when the shape is wrong."""
        for key in keys:
            if not isinstance(data, dict) or key not in data:
                raise ContentError(f"Unexpected API response: missing '{key}'")
            data = data[key]
        return data

    # =========================================================================
    # Fun
    # =========================================================================

    async def joke(self) -> Tuple[str, str]:
        """(setup, punchline)"""
        data = await self._get_json("Joke", JOKE_URL)
        return str(self._field(data, "setup")), str(self._field(data, "punchline"))

    async def meme(self) -> Tuple[str, str]:
        """(title, image_url)"""
        data = await self._get_json("Meme", MEME_URL)
        return str(self._field(data, "title")), str(self._field(data, "url"))

    async def quote(self) -> Tuple[str, str]:
        """(content, author)"""
        data = await self._get_json("Quote", QUOTE_URL)
        return str(self._field(data, "content")), str(self._field(data, "author"))

    async def fact(self) -> str:
        data = await self._get_json("Fact", FACT_URL, params={"language": "en"})
        return str(self._field(data, "text"))

    # =========================================================================
    # Utility
    # =========================================================================

    async def weather(self, location: str) -> Dict[str, Any]:
        """Current conditions in metric units (OpenWeatherMap payload)."""
        if not self.openweather_api_key:
            raise ContentNotConfigured("OPENWEATHER_API_KEY is not set")
        data = await self._get_json("Weather", WEATHER_URL, params={
            "q": location,
            "units": "metric",
            "appid": self.openweather_api_key,
        })
        self._field(data, "main", "temp")
        return data

    async def news(self, limit: int = 5) -> List[Dict[str, Any]]:
        """Top US headlines, at most `limit`."""
        if not self.newsapi_key:
            raise ContentNotConfigured("NEWSAPI_KEY is not set")
        data = await self._get_json("News", NEWS_URL, params={
            "country": "us",
            "apiKey": self.newsapi_key,
        })
        articles = self._field(data, "articles")
        if not isinstance(articles, list):
            raise ContentError("Unexpected API response: 'articles' is not a list")
        return articles[:limit]

    async def define(self, word: str) -> Optional[Dict[str, Any]]:
        """First dictionary entry for word, or None if the word is unknown."""
        session = await self._get_session()
        url = DICTIONARY_URL + quote(word, safe="")
        try:
            async with session.get(url, timeout=self._timeout) as resp:
                if resp.status == 404:
                    return None
                if resp.status >= 400:
                    raise ContentError(f"Dictionary API returned HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ContentError("Dictionary API request failed") from e

        if not isinstance(data, list) or not data:
            return None
        return data[0]

    async def covid(self, country: str) -> Dict[str, Any]:
        data = await self._get_json("COVID", COVID_URL + quote(country, safe=""))
        self._field(data, "cases")
        return data

    async def search_images(self, query: str) -> List[Dict[str, Any]]:
        """Unsplash search results (may be empty)."""
        if not self.unsplash_access_key:
            raise ContentNotConfigured("UNSPLASH_ACCESS_KEY is not set")
        data = await self._get_json("Unsplash", UNSPLASH_URL, params={
            "query": query,
            "client_id": self.unsplash_access_key,
        })
        results = self._field(data, "results")
        return results if isinstance(results, list) else []

    # =========================================================================
    # Download
    # =========================================================================

    async def download(self, url: str, dest: Path) -> str:
        """
        Download url to dest.

        Returns:
            The response Content-Type.

        Raises:
            ContentError: On HTTP, network or size failures.
        """
        session = await self._get_session()
        try:
            async with session.get(url, timeout=self._timeout) as resp:
                if resp.status >= 400:
                    raise ContentError(f"Download returned HTTP {resp.status}")
                data = await resp.read()
                mimetype = resp.headers.get("Content-Type", "application/octet-stream")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ContentError("Download failed") from e

        if len(data) > MAX_DOWNLOAD_BYTES:
            raise ContentError("Downloaded file is too large")

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(data)
        except OSError as e:
            raise ContentError(f"Could not write {dest.name}") from e
        return mimetype


__all__ = ["ContentClient"]
