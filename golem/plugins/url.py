"""URL plugin: remembers links posted per channel and describes them on demand.

``λurl`` describes the latest link seen in the channel, ``λurl 2`` the third
latest, ``λurl > nick`` addresses the answer to someone. YouTube links are
described through the YouTube data API when an API key is configured,
everything else through the page's ``<title>``.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from html.parser import HTMLParser
from urllib.parse import parse_qs, urlsplit

import httpx
from loguru import logger

from golem.config.schema import GolemConfig, UrlPluginConfig
from golem.errors import PluginError
from golem.irc.message import Message, privmsg
from golem.plugins.base import Initialised, Plugin
from golem.plugins.parsing import parse_command

YT_API_URL = "https://www.googleapis.com/youtube/v3"
YT_HOSTNAMES = {
    "youtube.com",
    "www.youtube.com",
    "youtu.be",
    "www.youtu.be",
    "m.youtube.com",
}
_URL_TRIM = "[]()<>{}\"',"


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def parse_urls(text: str) -> list[str]:
    """Every http(s) URL found in ``text``, in order."""
    urls = []
    for word in text.split():
        word = word.strip(_URL_TRIM)
        parts = urlsplit(word)
        if parts.scheme in ("http", "https") and parts.netloc:
            urls.append(word)
    return urls


def parse_url_command(text: str | None) -> tuple[int, str | None] | None:
    """Return (index, target nick) for ``λurl [idx] [> nick]``, else None."""
    cmd = parse_command(text)
    if cmd is None or cmd.name != "url":
        return None
    if not cmd.args:
        return 0, cmd.target
    if not cmd.args.isdigit():
        return None
    return int(cmd.args), cmd.target


def is_yt_url(url: str) -> bool:
    return (urlsplit(url).hostname or "") in YT_HOSTNAMES


@dataclass(frozen=True)
class YtId:
    kind: str  # "video", "channel" or "playlist"
    value: str


def extract_yt_id(url: str) -> YtId | None:
    parts = urlsplit(url)
    segments = [s for s in parts.path.split("/") if s]
    first = segments[0] if segments else None
    second = segments[1] if len(segments) > 1 else None
    query = parse_qs(parts.query)

    if parts.hostname in ("youtu.be", "www.youtu.be"):
        return YtId("video", first) if first else None

    if first in ("c", "channel", "user"):
        return YtId("channel", second) if second else None
    if first == "watch" and query.get("v"):
        return YtId("video", query["v"][0])
    if first == "shorts" and second:
        return YtId("video", second)
    if first == "playlist" and query.get("list"):
        return YtId("playlist", query["list"][0])
    return None


class _TitleParser(HTMLParser):
    """Collects the text of the first <title> element."""

    def __init__(self):
        super().__init__()
        self._in_title = False
        self._done = False
        self._parts: list[str] = []

    def handle_starttag(self, tag, attrs):
        if tag == "title" and not self._done:
            self._in_title = True

    def handle_endtag(self, tag):
        if tag == "title" and self._in_title:
            self._in_title = False
            self._done = True

    def handle_data(self, data):
        if self._in_title:
            self._parts.append(data)

    @property
    def title(self) -> str | None:
        if not self._parts:
            return None
        return " ".join("".join(self._parts).split()) or None


def extract_title(html: str) -> str | None:
    parser = _TitleParser()
    parser.feed(html)
    parser.close()
    return parser.title


# ---------------------------------------------------------------------------
# Plugin
# ---------------------------------------------------------------------------


class UrlPlugin(Plugin):
    name = "url"

    def __init__(
        self,
        config: UrlPluginConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self.yt_api_key = config.youtube_api_key
        self._transport = transport
        self.seen_urls: dict[str, deque[str]] = {}

    @classmethod
    async def init(cls, config: GolemConfig) -> Initialised:
        url_config = config.plugin_config.url
        if url_config.youtube_api_key:
            logger.info("Url plugin initialized with youtube api credentials.")
        else:
            logger.warning("Url plugin is missing youtube api key.")
        return Initialised(plugin=cls(url_config))

    def add_urls(self, channel: str, urls: list[str]) -> None:
        seen = self.seen_urls.setdefault(
            channel, deque(maxlen=self.config.max_urls_per_channel)
        )
        for url in urls:
            logger.debug("Adding url to {}: {}", channel, url)
            seen.append(url)

    async def in_message(self, msg: Message) -> Message | None:
        channel = msg.response_target
        if channel is None or msg.text is None:
            return None

        command = parse_url_command(msg.text)
        if command is None:
            self.add_urls(channel, parse_urls(msg.text))
            return None

        idx, target = command
        description = await self.get_url(channel, idx)
        prefix = f"{target}: " if target else ""
        return privmsg(channel, f"{prefix}{description}")

    async def out_message(self, msg: Message) -> None:
        # Links posted by the other plugins count as seen too
        if msg.command == "PRIVMSG" and msg.text and msg.target:
            self.add_urls(msg.target, parse_urls(msg.text))

    async def get_url(self, channel: str, idx: int) -> str:
        urls = self.seen_urls.get(channel)
        if not urls or idx >= len(urls):
            return f"No stored url found at index {idx}"
        url = urls[-1 - idx]

        if self.yt_api_key and is_yt_url(url):
            return await self.get_yt_url(url)
        return await self.get_regular_url(url)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=True,
            transport=self._transport,
            headers={"User-Agent": "golem"},
        )

    async def get_regular_url(self, url: str) -> str:
        try:
            async with self._client() as client:
                resp = await client.get(url)
        except httpx.HTTPError as e:
            raise PluginError(f"Cannot GET {url}: {e}") from e

        if resp.status_code != 200:
            return f"Oops, wrong status code, got {resp.status_code}"

        content_type = resp.headers.get("content-type")
        if not content_type:
            return f"No valid content type found for {url}"
        if "text" not in content_type and "html" not in content_type:
            return f"Cannot extract title from content type {content_type} for {url}"

        title = extract_title(resp.text)
        if title is None:
            return f"No title found at {url}"
        return f"{title} [{url}]"

    async def get_yt_url(self, url: str) -> str:
        yt_id = extract_yt_id(url)
        if yt_id is None:
            return f"Cannot figure out what to query for {url}"

        logger.debug("Fetching yt data for {}", yt_id)
        if yt_id.kind == "video":
            items = await self._yt_api_call("videos", {"id": yt_id.value})
            if not items:
                return f"Nothing found for video {yt_id.value}"
            snippet = items[0].get("snippet", {})
            return f"{snippet.get('title', '')} [{snippet.get('channelTitle', '')}] [{url}]"

        if yt_id.kind == "playlist":
            items = await self._yt_api_call("playlists", {"id": yt_id.value})
            if not items:
                return f"No playlist found for {yt_id.value}"
            snippet = items[0].get("snippet", {})
            return f"Playlist: {snippet.get('title', '')} [{url}]"

        items = await self._yt_api_call(
            "search", {"type": "channel", "q": yt_id.value}, soft_not_found=True
        )
        if not items:
            return f"No channel found for {yt_id.value}"
        snippet = items[0].get("snippet", {})
        title = snippet.get("channelTitle", "")
        description = snippet.get("description", "")
        if description:
            return f"Channel: {title} ({description}) [{url}]"
        return f"Channel: {title} [{url}]"

    async def _yt_api_call(
        self,
        resource: str,
        params: dict[str, str],
        soft_not_found: bool = False,
    ) -> list[dict]:
        query = {**params, "key": self.yt_api_key, "part": "snippet"}
        try:
            async with self._client() as client:
                resp = await client.get(f"{YT_API_URL}/{resource}", params=query)
        except httpx.HTTPError as e:
            raise PluginError(f"Failed to fetch {resource} for {params}: {e}") from e

        if soft_not_found and resp.status_code == 404:
            return []
        if resp.status_code != 200:
            raise PluginError(
                f"Failed to fetch {resource} for {params}: status {resp.status_code}"
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise PluginError(f"Cannot parse response when fetching {resource}") from e
        if not isinstance(data, dict):
            raise PluginError(f"Unexpected response when fetching {resource}")
        return data.get("items") or []
