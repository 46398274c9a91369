"""Video sources: channel feeds and yt-dlp downloads."""

from reelcut.sources.download import DownloadedSource, Downloader
from reelcut.sources.feed import FeedEntry, FeedReader, apply_limit, extract_video_id, parse_feed

__all__ = [
    "DownloadedSource",
    "Downloader",
    "FeedEntry",
    "FeedReader",
    "apply_limit",
    "extract_video_id",
    "parse_feed",
]
