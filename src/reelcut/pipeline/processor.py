"""Channel processing orchestration.

Runs every video of a channel through the pipeline:
- Skip/force policy keyed on the video's output directory
- Download, segment, propose cuts, materialize, render, publish
- Per-video failure isolation with stage-tagged error records
- Optional parallelism across videos
- A run report written into each video's output directory
"""

from __future__ import annotations

import shutil
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable

from reelcut.captions.timed_text import read_timed_text
from reelcut.config import AppConfig, ChannelConfig
from reelcut.errors import (
    CredentialError,
    DownloadError,
    FeedError,
    ProbeError,
    PublishError,
    SubtitleParseError,
    format_error_for_display,
)
from reelcut.ffmpeg import MediaTool
from reelcut.llm.cuts import CutProposer
from reelcut.llm.metadata import MetadataGenerator
from reelcut.logging import get_logger, log_stage_failed
from reelcut.models.rendition import RenditionVariant
from reelcut.models.segment import MediaSegment
from reelcut.pipeline.materializer import CutMaterializer, MaterializedCut
from reelcut.pipeline.rendition import RenditionPipeline
from reelcut.pipeline.segments import SegmentPlanner
from reelcut.publish.auth import CredentialStore
from reelcut.publish.youtube import YouTubePublisher
from reelcut.sources.download import Downloader
from reelcut.sources.feed import FeedEntry, FeedReader
from reelcut.storage import StorageError, atomic_write_json

logger = get_logger(__name__)

REPORT_FILENAME = "report.json"
VERTICAL_TITLE_SUFFIX = " (Vertical)"


class VideoStatus(str, Enum):
    """Lifecycle of a video in a channel run."""

    DISCOVERED = "discovered"
    DOWNLOADED = "downloaded"
    SEGMENTED = "segmented"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class VideoResult:
    """Result of processing a single video.

    Attributes:
        video_id: Source video id
        output_dir: Directory holding every artifact of the video
        status: Lifecycle status
        segments: Number of segments processed
        cuts_proposed: Windows proposed by the semantic service
        cuts_rendered: Cuts that produced a horizontal clip
        uploads: Ids of published videos
        artifacts: Paths of every produced artifact
        errors: Stage-tagged failure messages
    """

    video_id: str
    output_dir: Path
    status: VideoStatus = VideoStatus.DISCOVERED
    segments: int = 0
    cuts_proposed: int = 0
    cuts_rendered: int = 0
    uploads: list[str] = field(default_factory=list)
    artifacts: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    started_at: str = ""
    completed_at: str = ""

    def record_error(self, stage: str, error: Exception | str, **context) -> None:
        """Add a failure message naming the stage and its context."""
        message = error if isinstance(error, str) else format_error_for_display(error)
        if context:
            message += " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
        self.errors.append(f"{stage}: {message}")

    @property
    def duration(self) -> float | None:
        """Processing duration in seconds."""
        if not self.started_at or not self.completed_at:
            return None
        start = datetime.fromisoformat(self.started_at)
        end = datetime.fromisoformat(self.completed_at)
        return (end - start).total_seconds()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "video_id": self.video_id,
            "output_dir": str(self.output_dir),
            "status": self.status.value,
            "segments": self.segments,
            "cuts_proposed": self.cuts_proposed,
            "cuts_rendered": self.cuts_rendered,
            "uploads": self.uploads,
            "artifacts": self.artifacts,
            "errors": self.errors,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "duration_seconds": self.duration,
        }


class ChannelProcessor:
    """Processes the videos of one channel."""

    def __init__(
        self,
        config: AppConfig,
        channel: ChannelConfig,
        media_tool: MediaTool,
        cut_proposer: CutProposer,
        metadata_generator: MetadataGenerator | None = None,
        downloader: Downloader | None = None,
        feed_reader: FeedReader | None = None,
        credential_store: CredentialStore | None = None,
        publisher_factory: Callable[[object], YouTubePublisher] | None = None,
        progress_callback: Callable[[str, int, int, str], None] | None = None,
    ):
        """Initialize the processor.

        Args:
            config: Application configuration
            channel: Channel to process
            media_tool: Media operations
            cut_proposer: Cut proposal adapter
            metadata_generator: Metadata generator; None disables metadata
            downloader: Source downloader
            feed_reader: Channel feed reader
            credential_store: Publishing token store
            publisher_factory: Builds a publisher from credentials
            progress_callback: Optional callback for progress updates
                Signature: (stage, current, total, message)
        """
        self.config = config
        self.channel = channel
        self.media_tool = media_tool
        self.cut_proposer = cut_proposer
        self.metadata_generator = metadata_generator
        self.downloader = downloader or Downloader(config.ytdlp)
        self.feed_reader = feed_reader or FeedReader()
        self.credential_store = credential_store or CredentialStore(config.token_path)
        self.publisher_factory = publisher_factory or (lambda creds: YouTubePublisher(creds))
        self.progress_callback = progress_callback
        self.planner = SegmentPlanner(media_tool, config.segment_bound_seconds)
        self.renditions = RenditionPipeline(media_tool, channel)

        self._publisher: YouTubePublisher | None = None
        self._publisher_error: str | None = None
        self._publisher_lock = threading.Lock()

    def _report_progress(self, stage: str, current: int, total: int, message: str = "") -> None:
        """Report progress to callback if set."""
        if self.progress_callback:
            self.progress_callback(stage, current, total, message)

    def process_channel(self, force: bool = False) -> list[VideoResult]:
        """Process the latest videos of the channel.

        Args:
            force: Reprocess videos whose output directory already exists

        Returns:
            One result per video, in feed order
        """
        try:
            entries = self.feed_reader.latest_videos(self.channel)
        except FeedError as e:
            log_stage_failed(logger, "feed", e, channel=self.channel.id)
            return []

        total = len(entries)
        if self.config.max_parallel_videos <= 1 or total <= 1:
            results = []
            for i, entry in enumerate(entries, start=1):
                self._report_progress("video", i, total, entry.video_id)
                results.append(self.process_video(entry, force))
            return results

        ordered: dict[str, VideoResult] = {}
        with ThreadPoolExecutor(max_workers=self.config.max_parallel_videos) as executor:
            futures = {executor.submit(self.process_video, entry, force): entry for entry in entries}
            for done, future in enumerate(as_completed(futures), start=1):
                entry = futures[future]
                ordered[entry.video_id] = future.result()
                self._report_progress("video", done, total, entry.video_id)
        return [ordered[entry.video_id] for entry in entries]

    def process_video(self, entry: FeedEntry, force: bool = False) -> VideoResult:
        """Run one video through the pipeline.

        Failures are recorded on the result; nothing is raised for
        per-video problems.
        """
        output_dir = Path(self.channel.folder) / entry.video_id
        result = VideoResult(video_id=entry.video_id, output_dir=output_dir)
        result.started_at = datetime.now().isoformat()

        log = logger.with_context(video=entry.video_id)

        if output_dir.exists():
            if not force:
                log.info("Video already processed, skipping (use --force to reprocess)")
                result.status = VideoStatus.SKIPPED
                result.completed_at = datetime.now().isoformat()
                return result
            log.info("Removing previous output")
            try:
                shutil.rmtree(output_dir)
            except OSError as e:
                result.record_error("cleanup", f"Cannot remove {output_dir}: {e}")
                result.status = VideoStatus.FAILED
                result.completed_at = datetime.now().isoformat()
                return result

        try:
            self._run(entry, result)
            result.status = VideoStatus.COMPLETED
            log.info(f"Video completed with {result.cuts_rendered} cuts")
        except (DownloadError, SubtitleParseError, ProbeError) as e:
            stage = e.context.get("stage", "source")
            log_stage_failed(log, stage, e)
            result.record_error(stage, e)
            result.status = VideoStatus.FAILED
        except Exception as e:
            log_stage_failed(log, "pipeline", e)
            result.record_error("pipeline", f"{type(e).__name__}: {e}")
            result.status = VideoStatus.FAILED
        finally:
            result.completed_at = datetime.now().isoformat()
            self._write_report(result)

        return result

    def _run(self, entry: FeedEntry, result: VideoResult) -> None:
        output_dir = result.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)

        try:
            source = self.downloader.fetch(
                entry.url,
                output_dir,
                entry.video_id,
                self.channel.ytdlp_format,
                self.channel.caption_language,
            )
        except DownloadError as e:
            e.context.setdefault("stage", "download")
            raise
        result.status = VideoStatus.DOWNLOADED

        caption_entries = []
        if source.caption_path is not None:
            try:
                caption_entries = read_timed_text(source.caption_path)
            except SubtitleParseError as e:
                e.context.setdefault("stage", "captions")
                raise

        try:
            segments = self.planner.split(source.video_path, caption_entries, source.caption_path)
        except ProbeError as e:
            e.context.setdefault("stage", "segment")
            raise
        result.status = VideoStatus.SEGMENTED
        result.segments = len(segments)

        try:
            for segment in segments:
                self._report_progress("segment", segment.index, len(segments), entry.video_id)
                self._process_segment(segment, result, prefix_segment=len(segments) > 1)
        finally:
            removed = self.planner.cleanup(segments)
            if removed:
                logger.info(f"Removed {removed} segment files")

    def _process_segment(self, segment: MediaSegment, result: VideoResult, prefix_segment: bool) -> None:
        document = ""
        if segment.caption_path is not None:
            try:
                document = segment.caption_path.read_text(encoding="utf-8")
            except OSError as e:
                result.record_error("cuts", f"Cannot read segment captions: {e}", segment=segment.index)
                return

        cuts = self.cut_proposer.propose(
            document,
            self.channel.topics,
            self.channel.excerpts,
            self.channel.stretch_time,
        )
        result.cuts_proposed += len(cuts)
        if not cuts:
            logger.info("No cuts for segment", extra={"segment": segment.index})
            return

        materializer = CutMaterializer(self.media_tool, self.metadata_generator)
        try:
            materialized = materializer.materialize(
                segment,
                cuts,
                result.output_dir,
                topics=self.channel.topics,
                prefix_segment=prefix_segment,
            )
        except ProbeError as e:
            log_stage_failed(logger, "materialize", e, segment=segment.index)
            result.record_error("materialize", e, segment=segment.index)
            return

        for failure in materializer.failures:
            result.record_error(
                failure.stage, failure.message, segment=failure.segment_index, cut=failure.cut.title
            )

        for cut in materialized:
            produced = self.renditions.render(cut, result.output_dir)
            result.cuts_rendered += 1
            result.artifacts.extend(str(path) for path in produced.values())
            if cut.metadata_path is not None:
                result.artifacts.append(str(cut.metadata_path))
            self._publish(cut, result)

    def _get_publisher(self) -> YouTubePublisher | None:
        """Build the publisher once; credential problems disable uploads."""
        with self._publisher_lock:
            if self._publisher is None and self._publisher_error is None:
                try:
                    self._publisher = self.publisher_factory(self.credential_store.get_valid())
                except CredentialError as e:
                    self._publisher_error = format_error_for_display(e)
                    log_stage_failed(logger, "upload", e)
            return self._publisher

    def _publish(self, cut: MaterializedCut, result: VideoResult) -> None:
        if not self.channel.upload_to_youtube:
            return
        if cut.metadata is None:
            logger.info("No metadata, skipping upload", extra={"cut": cut.title})
            return

        publisher = self._get_publisher()
        if publisher is None:
            result.record_error("upload", self._publisher_error or "publisher unavailable", cut=cut.title)
            return

        horizontal = cut.artifacts.get(
            RenditionVariant.HORIZONTAL_PUBLISHABLE, cut.artifacts.get(RenditionVariant.HORIZONTAL)
        )
        targets = [(horizontal, "")]
        vertical = cut.artifacts.get(RenditionVariant.VERTICAL)
        if vertical is not None and vertical.exists():
            targets.append((vertical, VERTICAL_TITLE_SUFFIX))

        for path, suffix in targets:
            try:
                result.uploads.append(publisher.upload(path, cut.metadata, title_suffix=suffix))
            except PublishError as e:
                log_stage_failed(logger, "upload", e, cut=cut.title)
                result.record_error("upload", e, cut=cut.title)

    def _write_report(self, result: VideoResult) -> None:
        if not result.output_dir.exists():
            return
        try:
            atomic_write_json(result.output_dir / REPORT_FILENAME, result.to_dict())
        except StorageError as e:
            logger.warning(f"Could not write report: {e}")


def build_channel_processor(
    config: AppConfig,
    channel: ChannelConfig,
    media_tool: MediaTool | None = None,
    progress_callback: Callable[[str, int, int, str], None] | None = None,
) -> ChannelProcessor:
    """Create a ChannelProcessor wired to the real services."""
    from reelcut.ffmpeg import FFmpegMediaTool
    from reelcut.ffmpeg_binary import ToolPaths
    from reelcut.llm.client import SemanticClient

    if media_tool is None:
        media_tool = FFmpegMediaTool(
            ToolPaths(ffmpeg=config.ffmpeg, ffprobe=config.ffprobe, ytdlp=config.ytdlp),
            encoding=config.encoding,
            burn_style=config.burn_in,
        )

    client = SemanticClient(config.openai)
    return ChannelProcessor(
        config=config,
        channel=channel,
        media_tool=media_tool,
        cut_proposer=CutProposer(client, timeout=config.openai.cuts_timeout),
        metadata_generator=MetadataGenerator(client, timeout=config.openai.metadata_timeout),
        downloader=Downloader(config.ytdlp),
        progress_callback=progress_callback,
    )
