"""Twitch VOD adapter.

Fetches chat replays and HLS playback URLs of past broadcasts through
Twitch's public GraphQL endpoint. The Helix API exposes neither, so the
client speaks the same persisted queries as the Twitch web player.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from ...domain.exceptions import ErrorContext, TranscriptError
from ...domain.models import ChatMessage, Vod
from ..config import TwitchConfig

logger = logging.getLogger(__name__)

COMMENTS_OPERATION = "VideoCommentsByOffsetOrCursor"
COMMENTS_QUERY_HASH = "b70a3591ff0f4e0313d126c6a1502d79a1c02baebb288227c582044aa76adf6a"

PLAYBACK_TOKEN_QUERY = """
query PlaybackAccessToken($vodID: ID!) {
  videoPlaybackAccessToken(
    id: $vodID
    params: {platform: "web", playerBackend: "mediaplayer", playerType: "site"}
  ) {
    value
    signature
  }
}
"""


def parse_comment(node: Dict[str, Any]) -> Optional[ChatMessage]:
    """Convert one GraphQL comment node into a chat message.

    Comments of deleted accounts carry no commenter and are skipped.
    """
    commenter = node.get("commenter")
    if not commenter or not commenter.get("login"):
        return None

    fragments = (node.get("message") or {}).get("fragments") or []
    text = "".join(fragment.get("text") or "" for fragment in fragments)
    emotes = frozenset(
        (fragment.get("text") or "").strip()
        for fragment in fragments
        if fragment.get("emote") and (fragment.get("text") or "").strip()
    )

    offset = node.get("contentOffsetSeconds") or 0
    return ChatMessage(
        timestamp=int(round(float(offset) * 1000)),
        sender=commenter["login"],
        text=text,
        emotes=emotes,
    )


class TwitchVodClient:
    """Chat replay provider and playback URL resolver for Twitch VODs."""

    def __init__(
        self,
        client_id: str,
        gql_url: str = "https://gql.twitch.tv/gql",
        usher_url: str = "https://usher.ttvnw.net/vod",
        timeout: float = 30.0,
        max_pages: int = 10_000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.gql_url = gql_url
        self.usher_url = usher_url.rstrip("/")
        self.max_pages = max_pages
        self._client = httpx.AsyncClient(
            headers={"Client-Id": client_id},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: TwitchConfig) -> "TwitchVodClient":
        return cls(
            client_id=config.client_id,
            gql_url=config.gql_url,
            usher_url=config.usher_url,
            timeout=config.request_timeout_seconds,
            max_pages=config.max_pages,
        )

    async def __aenter__(self) -> "TwitchVodClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _gql(self, payload: Dict[str, Any], vod_id: str) -> Dict[str, Any]:
        context = ErrorContext(entity_type="Vod", entity_id=vod_id)
        try:
            response = await self._client.post(self.gql_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise TranscriptError(
                f"Twitch API error: {e.response.status_code}", context=context
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise TranscriptError(f"Twitch API request failed: {e}", context=context) from e

        if body.get("errors"):
            message = body["errors"][0].get("message", "unknown error")
            raise TranscriptError(f"Twitch API error: {message}", context=context)
        return body.get("data") or {}

    async def fetch_transcript(self, vod: Vod) -> List[ChatMessage]:
        """Download the full chat replay of a VOD, ordered by timestamp."""
        video_id = vod.platform_vod_id
        messages: List[ChatMessage] = []
        cursor: Optional[str] = None

        for page in range(self.max_pages):
            variables: Dict[str, Any] = {"videoID": video_id}
            if cursor:
                variables["cursor"] = cursor
            else:
                variables["contentOffsetSeconds"] = 0

            data = await self._gql(
                {
                    "operationName": COMMENTS_OPERATION,
                    "variables": variables,
                    "extensions": {
                        "persistedQuery": {"version": 1, "sha256Hash": COMMENTS_QUERY_HASH}
                    },
                },
                video_id,
            )

            comments = ((data.get("video") or {}).get("comments")) or {}
            edges = comments.get("edges") or []
            for edge in edges:
                message = parse_comment(edge.get("node") or {})
                if message is not None:
                    messages.append(message)

            has_next = (comments.get("pageInfo") or {}).get("hasNextPage", False)
            cursor = edges[-1].get("cursor") if edges else None
            if not has_next or not cursor:
                break
        else:
            logger.warning(
                f"Chat replay of VOD {video_id} truncated after {self.max_pages} pages"
            )

        messages.sort(key=lambda message: message.timestamp)
        logger.info(f"Fetched {len(messages)} chat messages for VOD {video_id}")
        return messages

    async def resolve_playback_url(self, vod: Vod) -> Optional[str]:
        """HLS playlist URL of a VOD, or None when Twitch grants no access token."""
        video_id = vod.platform_vod_id
        data = await self._gql(
            {
                "operationName": "PlaybackAccessToken",
                "query": PLAYBACK_TOKEN_QUERY,
                "variables": {"vodID": video_id},
            },
            video_id,
        )

        token = data.get("videoPlaybackAccessToken") or {}
        if not token.get("value") or not token.get("signature"):
            logger.warning(f"No playback access token for VOD {video_id}")
            return None

        query = urlencode(
            {"sig": token["signature"], "token": token["value"], "allow_source": "true"}
        )
        return f"{self.usher_url}/{video_id}.m3u8?{query}"
