"""FFmpeg-backed media operations for reelcut.

Defines the MediaTool capability used by the pipeline (duration probe,
slicing, caption burn-in, template overlay, cover frames) and its concrete
implementation on top of the ffmpeg/ffprobe executables.
"""

from __future__ import annotations

import platform
import subprocess
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

from reelcut.config import BurnInStyle, EncodingProfile
from reelcut.errors import DurationProbeError, EncodingError, MediaToolNotFoundError
from reelcut.ffmpeg_binary import ToolPaths, get_ffmpeg_path, get_ffprobe_path
from reelcut.logging import get_logger

logger = get_logger(__name__)

FFMPEG_TIMEOUT = 3600
FFPROBE_TIMEOUT = 30

OVERLAY_FILTER = (
    "[0:v]loop=loop=-1:size=1:start=0[loopbg];"
    "[1:v]scale={width}:-1[scaled];"
    "[loopbg][scaled]overlay=(W-w)/2:(H-h)/2:shortest=1[outv]"
)


class EncodingMode(str, Enum):
    """Encoding mode for slicing."""

    COPY = "copy"  # Stream copy - fast, cuts land on keyframes
    REENCODE = "reencode"  # Re-encode - slower, frame-accurate


def escape_drawtext(text: str) -> str:
    """Escape special characters for the FFmpeg drawtext filter.

    Args:
        text: Text to escape

    Returns:
        Escaped text
    """
    text = text.replace("\\", "\\\\")
    text = text.replace("'", "'\\''")
    text = text.replace(":", "\\:")
    text = text.replace("%", "\\%")
    return text


def escape_filter_path(path: Path | str) -> str:
    """Escape a file path used as a filter argument (e.g. ``subtitles=``)."""
    text = Path(path).as_posix()
    text = text.replace("\\", "\\\\")
    text = text.replace(":", "\\:")
    text = text.replace("'", "\\'")
    return text


def wrap_title(title: str, words_per_line: int = 3) -> str:
    """Break a title into lines of at most ``words_per_line`` words."""
    words = title.split()
    if len(words) <= words_per_line:
        return title
    lines = [
        " ".join(words[i:i + words_per_line])
        for i in range(0, len(words), words_per_line)
    ]
    return "\n".join(lines)


class MediaTool(ABC):
    """Media operations the pipeline depends on.

    Implementations raise DurationProbeError when a duration cannot be read and
    EncodingError when an output cannot be produced.
    """

    @abstractmethod
    def probe_duration(self, path: Path) -> float:
        """Return the duration of a media file in seconds."""

    @abstractmethod
    def extract_slice(
        self,
        input_path: Path,
        output_path: Path,
        start: float,
        duration: float,
        mode: EncodingMode = EncodingMode.COPY,
    ) -> Path:
        """Write ``[start, start + duration)`` of the input to ``output_path``."""

    @abstractmethod
    def burn_captions(self, input_path: Path, caption_path: Path, output_path: Path) -> Path:
        """Re-encode the input with the SRT captions rendered into the picture."""

    @abstractmethod
    def compose_overlay(self, template_path: Path, clip_path: Path, output_path: Path) -> Path:
        """Centre the clip over a looped template image or video."""

    @abstractmethod
    def render_cover(
        self,
        template_path: Path,
        output_path: Path,
        text: str,
        font_size: str = "36",
        font_color: str = "white",
        font_file: str = "",
        effect: str = "",
    ) -> Path:
        """Render one frame of the template with centred text."""


class FFmpegMediaTool(MediaTool):
    """MediaTool implemented with the ffmpeg and ffprobe executables."""

    def __init__(
        self,
        paths: ToolPaths | None = None,
        encoding: EncodingProfile | None = None,
        burn_style: BurnInStyle | None = None,
    ) -> None:
        """Initialize the FFmpeg media tool.

        Args:
            paths: Optional configured tool locations.
            encoding: Re-encode settings.
            burn_style: Caption style forced during burn-in.

        Raises:
            MediaToolNotFoundError: If FFmpeg or FFprobe is not available.
        """
        self._paths = paths or ToolPaths()
        self.encoding = encoding or EncodingProfile()
        self.burn_style = burn_style or BurnInStyle()

        self._ffmpeg_path = get_ffmpeg_path(self._paths)
        if self._ffmpeg_path is None:
            raise MediaToolNotFoundError(
                "FFmpeg not found. Install FFmpeg or imageio-ffmpeg, or set 'ffmpeg' in config.json."
            )
        self._ffprobe_path = get_ffprobe_path(self._paths)
        if self._ffprobe_path is None:
            raise MediaToolNotFoundError(
                "FFprobe not found. Install FFmpeg or set 'ffprobe' in config.json."
            )

    @property
    def ffmpeg_path(self) -> str:
        return self._ffmpeg_path

    @property
    def ffprobe_path(self) -> str:
        return self._ffprobe_path

    def _get_subprocess_flags(self) -> int:
        """Get platform-specific subprocess creation flags."""
        if platform.system() == "Windows":
            return subprocess.CREATE_NO_WINDOW
        return 0

    def _run_ffmpeg(
        self,
        args: list[str],
        timeout: int = FFMPEG_TIMEOUT,
    ) -> subprocess.CompletedProcess:
        """Run FFmpeg with the given arguments.

        Args:
            args: Command-line arguments (excluding ffmpeg executable).
            timeout: Timeout in seconds.

        Returns:
            CompletedProcess result.

        Raises:
            EncodingError: If FFmpeg fails, times out or cannot be started.
        """
        cmd = [self._ffmpeg_path] + args
        logger.debug("Running ffmpeg", extra={"argv": " ".join(args)})

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                creationflags=self._get_subprocess_flags(),
            )
        except subprocess.TimeoutExpired as e:
            raise EncodingError(f"FFmpeg timed out after {timeout} seconds") from e
        except OSError as e:
            raise EncodingError(f"Failed to run FFmpeg: {e}") from e

        if result.returncode != 0:
            error_msg = (result.stderr or result.stdout or "Unknown error").strip()
            # FFmpeg prints its banner first; the cause is at the end
            raise EncodingError(f"FFmpeg failed: {error_msg[-500:]}")

        return result

    def _run_ffprobe(
        self,
        args: list[str],
        timeout: int = FFPROBE_TIMEOUT,
    ) -> subprocess.CompletedProcess:
        cmd = [self._ffprobe_path] + args

        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                creationflags=self._get_subprocess_flags(),
            )
        except subprocess.TimeoutExpired as e:
            raise DurationProbeError(f"FFprobe timed out after {timeout} seconds") from e
        except OSError as e:
            raise DurationProbeError(f"Failed to run FFprobe: {e}") from e

    def probe_duration(self, path: Path) -> float:
        """Get the duration of a media file.

        Args:
            path: Media file path.

        Returns:
            Duration in seconds.

        Raises:
            DurationProbeError: If the file is missing or its duration unreadable.
        """
        path = Path(path)
        context = {"path": str(path)}
        if not path.exists():
            raise DurationProbeError("Media file not found", context=context)

        result = self._run_ffprobe([
            "-v", "quiet",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(path),
        ])

        if result.returncode != 0:
            raise DurationProbeError(f"FFprobe failed: {result.stderr.strip()}", context=context)

        try:
            duration = float(result.stdout.strip())
        except ValueError as e:
            raise DurationProbeError(
                f"Unreadable duration: {result.stdout.strip()!r}", context=context
            ) from e

        if duration <= 0:
            raise DurationProbeError("Media has zero duration", context=context)
        return duration

    def _build_slice_args(
        self,
        input_path: Path,
        output_path: Path,
        start: float,
        duration: float,
        mode: EncodingMode,
    ) -> list[str]:
        if mode == EncodingMode.COPY:
            return [
                "-i", str(input_path),
                "-ss", f"{start:.3f}",
                "-t", f"{duration:.3f}",
                "-c", "copy",
                "-y",
                str(output_path),
            ]

        return [
            "-ss", f"{start:.3f}",
            "-i", str(input_path),
            "-t", f"{duration:.3f}",
            *self.encoding.to_args(),
            "-y",
            str(output_path),
        ]

    def extract_slice(
        self,
        input_path: Path,
        output_path: Path,
        start: float,
        duration: float,
        mode: EncodingMode = EncodingMode.COPY,
    ) -> Path:
        """Extract part of a media file.

        Args:
            input_path: Source media.
            output_path: Destination file.
            start: Start time in seconds.
            duration: Length in seconds.
            mode: Stream copy or re-encode.

        Returns:
            Path to the written slice.

        Raises:
            EncodingError: If extraction fails.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self._run_ffmpeg(self._build_slice_args(Path(input_path), output_path, start, duration, mode))
        return output_path

    def burn_captions(self, input_path: Path, caption_path: Path, output_path: Path) -> Path:
        """Burn an SRT file into the video."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        video_filter = (
            f"subtitles={escape_filter_path(caption_path)}"
            f":force_style='{self.burn_style.force_style()}'"
        )
        self._run_ffmpeg([
            "-i", str(input_path),
            "-vf", video_filter,
            *self.encoding.to_args(),
            "-y",
            str(output_path),
        ])
        return output_path

    def compose_overlay(self, template_path: Path, clip_path: Path, output_path: Path) -> Path:
        """Overlay the clip on a looped template, keeping the clip's audio."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self._run_ffmpeg([
            "-i", str(template_path),
            "-i", str(clip_path),
            "-filter_complex", OVERLAY_FILTER.format(width=self.encoding.overlay_width),
            "-map", "[outv]",
            "-map", "1:a",
            *self.encoding.to_args(),
            "-shortest",
            "-y",
            str(output_path),
        ])
        return output_path

    def render_cover(
        self,
        template_path: Path,
        output_path: Path,
        text: str,
        font_size: str = "36",
        font_color: str = "white",
        font_file: str = "",
        effect: str = "",
    ) -> Path:
        """Render a cover image with centred text.

        ``effect`` is appended verbatim to the drawtext options, so it must
        start with ``:`` (e.g. ``":box=1:boxcolor=black@0.5"``).
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        font_param = f":fontfile={escape_filter_path(font_file)}" if font_file else ""
        drawtext = (
            f"drawtext=text='{escape_drawtext(text)}'"
            f":fontsize={font_size}:fontcolor={font_color}{font_param}"
            f":x=(w-text_w)/2:y=(h-text_h)/2{effect}"
        )
        self._run_ffmpeg([
            "-i", str(template_path),
            "-vf", drawtext,
            "-frames:v", "1",
            "-y",
            str(output_path),
        ])
        return output_path
