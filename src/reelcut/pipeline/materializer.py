"""Cut materialization.

Turns validated cut windows into captioned horizontal clips, each with its own
caption slice, transcript and (when available) SEO metadata document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from reelcut.captions.timed_text import (
    format_window,
    read_timed_text,
    transcript_for_window,
    write_timed_text,
)
from reelcut.errors import CutWindowError, EncodingError, ReelcutError, SubtitleParseError
from reelcut.ffmpeg import EncodingMode, MediaTool
from reelcut.llm.metadata import MetadataGenerator
from reelcut.logging import get_logger
from reelcut.models.cut import CutWindow
from reelcut.models.metadata import VideoMetadata
from reelcut.models.rendition import RenditionVariant
from reelcut.models.segment import MediaSegment
from reelcut.models.subtitle import SubtitleEntry
from reelcut.storage import StorageError, save_model

logger = get_logger(__name__)


@dataclass
class MaterializedCut:
    """A cut rendered to its horizontal clip.

    Attributes:
        cut: The accepted window
        segment_index: Segment the window belongs to
        stem: File stem shared by every artifact of this cut
        clip_path: Horizontal clip (captioned when ``captioned`` is true)
        captioned: Whether captions were burned in
        transcript: Plain text spoken inside the cut
        metadata: Generated metadata, None when generation failed
        metadata_path: Where the metadata document was written
    """

    cut: CutWindow
    segment_index: int
    stem: str
    clip_path: Path
    captioned: bool = False
    transcript: str = ""
    metadata: VideoMetadata | None = None
    metadata_path: Path | None = None
    artifacts: dict[RenditionVariant, Path] = field(default_factory=dict)

    @property
    def title(self) -> str:
        return self.cut.title


@dataclass
class CutFailure:
    """A cut that produced no clip."""

    cut: CutWindow
    segment_index: int
    stage: str
    message: str


class CutMaterializer:
    """Extracts, captions and describes the cuts of one segment."""

    def __init__(
        self,
        media_tool: MediaTool,
        metadata_generator: MetadataGenerator | None = None,
    ):
        self.media_tool = media_tool
        self.metadata_generator = metadata_generator
        self.failures: list[CutFailure] = []

    def _load_captions(self, segment: MediaSegment) -> list[SubtitleEntry]:
        if segment.caption_path is None or not segment.caption_path.exists():
            return []
        try:
            return read_timed_text(segment.caption_path)
        except SubtitleParseError as e:
            logger.warning(f"Segment captions unreadable: {e.message}", extra={"segment": segment.index})
            return []

    def materialize(
        self,
        segment: MediaSegment,
        cuts: list[CutWindow],
        output_dir: Path,
        topics: str = "",
        prefix_segment: bool = False,
    ) -> list[MaterializedCut]:
        """Materialize every valid cut of a segment, in the order received.

        Args:
            segment: Segment the windows refer to
            cuts: Proposed windows
            output_dir: Video output directory
            topics: Channel topics, passed to metadata generation
            prefix_segment: Prefix artifact names with the segment number

        Returns:
            Materialized cuts; failed cuts are recorded in ``failures``

        Raises:
            ProbeError: If the segment duration cannot be read
        """
        output_dir = Path(output_dir)
        duration = self.media_tool.probe_duration(segment.media_path)
        entries = self._load_captions(segment)

        results = []
        used_stems: set[str] = set()
        for position, cut in enumerate(cuts, start=1):
            context = {"segment": segment.index, "cut": cut.title, "position": position}
            try:
                cut.validate_against(duration)
            except CutWindowError as e:
                logger.warning(f"Skipping cut: {e.message}", extra=context)
                self.failures.append(CutFailure(cut, segment.index, "validate", e.message))
                continue

            stem = self._unique_stem(cut, segment, prefix_segment, used_stems)
            try:
                results.append(self._materialize_one(segment, cut, stem, entries, output_dir, topics))
            except (ReelcutError, OSError) as e:
                message = e.message if isinstance(e, ReelcutError) else str(e)
                logger.error(f"Cut failed: {message}", extra=context)
                self.failures.append(CutFailure(cut, segment.index, "materialize", message))

        return results

    @staticmethod
    def _unique_stem(
        cut: CutWindow,
        segment: MediaSegment,
        prefix_segment: bool,
        used: set[str],
    ) -> str:
        base = cut.safe_name
        if prefix_segment:
            base = f"part{segment.index}_{base}"
        stem = base
        counter = 2
        while stem in used:
            stem = f"{base}_{counter}"
            counter += 1
        used.add(stem)
        return stem

    def _materialize_one(
        self,
        segment: MediaSegment,
        cut: CutWindow,
        stem: str,
        entries: list[SubtitleEntry],
        output_dir: Path,
        topics: str,
    ) -> MaterializedCut:
        final_path = RenditionVariant.HORIZONTAL.artifact_path(output_dir, stem)
        final_path.parent.mkdir(parents=True, exist_ok=True)
        working_clip = output_dir / f"temp_{segment.label}_{stem}.mp4"
        working_captions = output_dir / f"temp_{segment.label}_{stem}.srt"

        captioned = False
        try:
            self.media_tool.extract_slice(
                segment.media_path,
                working_clip,
                float(cut.begin),
                float(cut.duration),
                EncodingMode.REENCODE,
            )

            try:
                caption_document = format_window(entries, cut.begin, cut.end) if entries else ""
                if caption_document:
                    write_timed_text(working_captions, caption_document)
                    try:
                        self.media_tool.burn_captions(working_clip, working_captions, final_path)
                        captioned = True
                    except EncodingError as e:
                        logger.warning(
                            f"Caption burn-in failed, keeping plain clip: {e.message}",
                            extra={"cut": cut.title},
                        )
                else:
                    logger.info("No captions inside cut, keeping plain clip", extra={"cut": cut.title})
            except OSError as e:
                logger.warning(f"Could not write cut captions: {e}", extra={"cut": cut.title})

            if not captioned:
                working_clip.replace(final_path)
        finally:
            for path in (working_clip, working_captions):
                path.unlink(missing_ok=True)

        transcript = transcript_for_window(entries, cut.begin, cut.end)
        result = MaterializedCut(
            cut=cut,
            segment_index=segment.index,
            stem=stem,
            clip_path=final_path,
            captioned=captioned,
            transcript=transcript,
        )
        result.artifacts[RenditionVariant.HORIZONTAL] = final_path

        if self.metadata_generator is not None:
            result.metadata = self.metadata_generator.generate(cut.title, transcript, topics)
        if result.metadata is not None:
            metadata_path = final_path.with_suffix(".json")
            try:
                save_model(metadata_path, result.metadata)
                result.metadata_path = metadata_path
            except StorageError as e:
                logger.warning(f"Could not save metadata: {e}", extra={"cut": cut.title})

        logger.info(
            f"Materialized cut '{cut.title}' ({cut.begin}-{cut.end}s)",
            extra={"segment": segment.index, "captioned": captioned},
        )
        return result
