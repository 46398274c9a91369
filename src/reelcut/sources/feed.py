"""Channel feed reader.

Lists the latest videos of a channel from its public Atom feed.
"""

from __future__ import annotations

import urllib.error
import urllib.request
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from reelcut.config import ChannelConfig
from reelcut.errors import FeedError
from reelcut.logging import get_logger

logger = get_logger(__name__)

FEED_URL = "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}"
VIDEO_URL = "https://www.youtube.com/watch?v={video_id}"
SINGLE_VIDEO_PREFIX = "v="

_ATOM = "{http://www.w3.org/2005/Atom}"


@dataclass
class FeedEntry:
    """A video listed in a channel feed."""

    video_id: str
    title: str = ""

    @property
    def url(self) -> str:
        return VIDEO_URL.format(video_id=self.video_id)


def extract_video_id(entry_id: str) -> str:
    """Video id from a feed entry id such as ``yt:video:abc123``."""
    return entry_id.rsplit(":", 1)[-1].strip()


def parse_feed(document: bytes | str) -> list[FeedEntry]:
    """Parse an Atom feed document into entries.

    Raises:
        FeedError: If the document is not valid XML
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise FeedError(f"Invalid feed XML: {e}") from e

    entries = []
    for element in root.iter(f"{_ATOM}entry"):
        entry_id = element.findtext(f"{_ATOM}id", default="")
        video_id = extract_video_id(entry_id)
        if video_id:
            entries.append(FeedEntry(video_id, element.findtext(f"{_ATOM}title", default="")))
    return entries


def apply_limit(entries: list[FeedEntry], limit: int) -> list[FeedEntry]:
    """Keep the first ``limit`` entries; 0 keeps all."""
    if limit <= 0:
        return list(entries)
    return entries[:limit]


class FeedReader:
    """Fetches the video list of a channel."""

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    def fetch(self, channel_id: str) -> bytes:
        """Download the raw feed document.

        Raises:
            FeedError: If the feed cannot be fetched
        """
        url = FEED_URL.format(channel_id=channel_id)
        req = urllib.request.Request(url, method="GET")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                return response.read()
        except urllib.error.HTTPError as e:
            raise FeedError(f"Feed request failed with status {e.code}", context={"url": url}) from e
        except (urllib.error.URLError, TimeoutError) as e:
            raise FeedError(f"Feed request failed: {e}", context={"url": url}) from e

    def latest_videos(self, channel: ChannelConfig) -> list[FeedEntry]:
        """Videos to process for a channel.

        A ``channel_id`` of the form ``v=<id>`` selects that single video
        without touching the feed.

        Raises:
            FeedError: If the feed cannot be read or lists no videos
        """
        if channel.channel_id.startswith(SINGLE_VIDEO_PREFIX):
            video_id = channel.channel_id[len(SINGLE_VIDEO_PREFIX):]
            logger.info(f"Processing specific video: {video_id}", extra={"channel": channel.id})
            return [FeedEntry(video_id)]

        entries = parse_feed(self.fetch(channel.channel_id))
        if not entries:
            raise FeedError(f"No videos found for channel: {channel.name or channel.id}")

        selected = apply_limit(entries, channel.video_limit)
        logger.info(
            f"Feed lists {len(entries)} videos, processing {len(selected)}",
            extra={"channel": channel.id},
        )
        return selected
