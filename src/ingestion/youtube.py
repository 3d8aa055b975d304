"""
Video catalog ingestion through the YouTube Data API v3
"""
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from core.scoring import MEDIA_TOPICS, extract_topics
from ingestion.base import RawItem, SourceAdapter
from ingestion.text import MAX_DESCRIPTION_LENGTH, truncate

API_URL = "https://www.googleapis.com/youtube/v3"
DEFAULT_DURATION_MINUTES = 10

_ISO_DURATION = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")


def parse_iso8601_duration(duration: Optional[str]) -> int:
    """
    Convert a ``PT#H#M#S`` duration into whole minutes, rounding seconds up.
    """
    match = _ISO_DURATION.match(duration or "")
    if not match or not any(match.groups()):
        return DEFAULT_DURATION_MINUTES

    hours, minutes, seconds = (int(g or 0) for g in match.groups())
    return hours * 60 + minutes + math.ceil(seconds / 60)


@dataclass(frozen=True)
class Channel:
    channel_id: str
    source: str
    query: Optional[str] = None
    max_results: int = 10
    order: str = "relevance"


class YouTubeChannelAdapter(SourceAdapter):
    """
    Search one channel, then look up snippet and duration for each hit.
    """

    def __init__(self, channel: Channel, api_key: Optional[str], **kwargs):
        super().__init__(**kwargs)
        self.channel = channel
        self.api_key = api_key
        self.name = channel.source

    async def _fetch(self) -> List[RawItem]:
        if not self.api_key:
            raise ValueError("YOUTUBE_API_KEY is not configured")

        search_params: Dict[str, Any] = {
            "part": "snippet",
            "channelId": self.channel.channel_id,
            "type": "video",
            "maxResults": self.channel.max_results,
            "order": self.channel.order,
            "key": self.api_key,
        }
        if self.channel.query:
            search_params["q"] = self.channel.query
            search_params["relevanceLanguage"] = "en"

        async with self.client() as client:
            resp = await client.get(f"{API_URL}/search", params=search_params)
            resp.raise_for_status()
            video_ids = [
                hit["id"]["videoId"]
                for hit in resp.json().get("items", [])
                if hit.get("id", {}).get("videoId")
            ]
            if not video_ids:
                return []

            resp = await client.get(
                f"{API_URL}/videos",
                params={
                    "part": "snippet,contentDetails",
                    "id": ",".join(video_ids),
                    "key": self.api_key,
                },
            )
            resp.raise_for_status()
            videos = resp.json().get("items", [])

        return self.parse_videos(videos)

    def parse_videos(self, videos: List[Dict[str, Any]]) -> List[RawItem]:
        items: List[RawItem] = []

        for video in videos:
            snippet = video.get("snippet")
            details = video.get("contentDetails")
            if not snippet or not details:
                continue

            title = snippet.get("title") or "Untitled"
            description = snippet.get("description") or ""
            thumbnails = snippet.get("thumbnails") or {}
            thumbnail = (thumbnails.get("high") or thumbnails.get("default") or {}).get("url")

            items.append(
                RawItem(
                    title=title,
                    url=f"https://www.youtube.com/watch?v={video['id']}",
                    description=truncate(description, MAX_DESCRIPTION_LENGTH, ellipsis=True),
                    source=self.name,
                    kind="video",
                    topics=extract_topics(f"{title} {description}", MEDIA_TOPICS),
                    thumbnail=thumbnail,
                    has_visuals=True,
                    duration_minutes=parse_iso8601_duration(details.get("duration")),
                )
            )

        return items
