"""Segment planning for long source videos.

Splits a source into fixed-length segments so that each caption document sent
to the semantic service stays bounded, and derives each segment's caption
track from the source captions.
"""

from __future__ import annotations

import math
from pathlib import Path

from reelcut.captions.timed_text import format_window, write_timed_text
from reelcut.errors import EncodingError
from reelcut.ffmpeg import EncodingMode, MediaTool
from reelcut.logging import get_logger
from reelcut.models.segment import MediaSegment
from reelcut.models.subtitle import SubtitleEntry

logger = get_logger(__name__)

SEGMENT_BOUND_SECONDS = 1200


def plan_segment_starts(duration: float, bound: float = SEGMENT_BOUND_SECONDS) -> list[float]:
    """Start offsets of the segments covering ``duration``.

    Args:
        duration: Source duration in seconds
        bound: Maximum segment length in seconds

    Returns:
        ``[0.0]`` when the source fits in one segment, otherwise one start
        every ``bound`` seconds
    """
    if bound <= 0:
        raise ValueError(f"Segment bound must be positive: {bound}")
    if duration <= bound:
        return [0.0]
    count = math.ceil(duration / bound)
    return [float(i * bound) for i in range(count)]


class SegmentPlanner:
    """Splits a source video and its captions into bounded segments."""

    def __init__(self, media_tool: MediaTool, bound: float = SEGMENT_BOUND_SECONDS):
        self.media_tool = media_tool
        self.bound = bound

    def split(
        self,
        video_path: Path,
        caption_entries: list[SubtitleEntry] | None = None,
        caption_path: Path | None = None,
    ) -> list[MediaSegment]:
        """Split a source into segments.

        Args:
            video_path: Source video
            caption_entries: Parsed source captions, if any
            caption_path: Source caption file, referenced when no split happens

        Returns:
            Segments in playback order; a segment whose media could not be
            cut is left out

        Raises:
            DurationProbeError: If the source duration cannot be read
        """
        video_path = Path(video_path)
        duration = self.media_tool.probe_duration(video_path)
        starts = plan_segment_starts(duration, self.bound)

        if len(starts) == 1:
            logger.info(f"Source fits in one segment ({duration:.0f}s)")
            return [
                MediaSegment(
                    index=1,
                    media_path=video_path,
                    caption_path=caption_path if caption_entries else None,
                    start_offset=0.0,
                    duration_bound=max(duration, 1e-3),
                    is_source=True,
                )
            ]

        logger.info(f"Splitting {duration:.0f}s source into {len(starts)} segments")
        segments = []
        for number, start in enumerate(starts, start=1):
            segment = self._cut_segment(video_path, caption_entries, number, start, duration)
            if segment is not None:
                segments.append(segment)
        return segments

    def _cut_segment(
        self,
        video_path: Path,
        caption_entries: list[SubtitleEntry] | None,
        number: int,
        start: float,
        duration: float,
    ) -> MediaSegment | None:
        media_path = video_path.with_name(f"{video_path.stem}.part{number}.mp4")
        length = min(self.bound, duration - start)
        context = {"segment": number, "start": start}

        try:
            self.media_tool.extract_slice(video_path, media_path, start, self.bound, EncodingMode.COPY)
        except EncodingError as e:
            logger.error(f"Skipping segment {number}: {e.message}", extra=context)
            return None

        caption_path = None
        if caption_entries:
            caption_path = self._write_segment_captions(
                caption_entries, video_path, number, start, context
            )

        return MediaSegment(
            index=number,
            media_path=media_path,
            caption_path=caption_path,
            start_offset=start,
            duration_bound=length,
        )

    def _write_segment_captions(
        self,
        entries: list[SubtitleEntry],
        video_path: Path,
        number: int,
        start: float,
        context: dict,
    ) -> Path | None:
        document = format_window(entries, start, start + self.bound)
        if not document:
            logger.info(f"Segment {number} has no captions", extra=context)
            return None

        path = video_path.with_name(f"{video_path.stem}.part{number}.srt")
        try:
            return write_timed_text(path, document)
        except OSError as e:
            logger.warning(f"Segment {number} left without captions: {e}", extra=context)
            return None

    def cleanup(self, segments: list[MediaSegment]) -> int:
        """Delete derived segment files, never the source.

        Returns:
            Number of files removed
        """
        removed = 0
        for segment in segments:
            if segment.is_source:
                continue
            for path in (segment.media_path, segment.caption_path):
                if path is not None and path.exists():
                    try:
                        path.unlink()
                        removed += 1
                    except OSError as e:
                        logger.warning(f"Could not remove {path}: {e}")
        return removed
