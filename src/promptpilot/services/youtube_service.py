"""YouTube video metadata used as prompt context."""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..exceptions import NotFoundError, PromptPilotError

logger = logging.getLogger(__name__)

TRANSCRIPT_NOTE = (
    "Due to YouTube API limitations, full transcript extraction requires authentication. "
    "Using video metadata as context instead."
)


class YouTubeService:
    """Reads caption availability and the snippet of one video."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.youtube_api_key
        self.base_url = settings.youtube_api_url
        self.transport = transport

    async def get_video_context(self, video_id: str) -> Dict[str, Any]:
        if not video_id:
            raise PromptPilotError("No video ID provided")
        if not self.api_key:
            raise PromptPilotError("YouTube API key is not configured")

        async with httpx.AsyncClient(base_url=self.base_url, timeout=15.0, transport=self.transport) as client:
            captions = await client.get(
                "/captions", params={"part": "snippet", "videoId": video_id, "key": self.api_key}
            )
            if captions.status_code >= 400:
                logger.error(f"YouTube API error: {captions.text}")
                raise PromptPilotError(f"Failed to fetch captions info: {captions.status_code}")

            videos = await client.get(
                "/videos", params={"part": "snippet", "id": video_id, "key": self.api_key}
            )
            if videos.status_code >= 400:
                raise PromptPilotError(f"Failed to fetch video details: {videos.status_code}")

        items = videos.json().get("items") or []
        if not items:
            raise NotFoundError("Video not found")

        snippet = items[0].get("snippet", {})
        return {
            "title": snippet.get("title"),
            "description": snippet.get("description"),
            "channelTitle": snippet.get("channelTitle"),
            "publishedAt": snippet.get("publishedAt"),
            "tags": snippet.get("tags") or [],
            "transcript": TRANSCRIPT_NOTE,
            "hasCaptions": bool(captions.json().get("items")),
        }
