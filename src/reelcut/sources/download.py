"""Source video and caption download via yt-dlp."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from reelcut.errors import DownloadError
from reelcut.logging import get_logger

logger = get_logger(__name__)

DOWNLOAD_TIMEOUT = 3600


@dataclass
class DownloadedSource:
    """Files fetched for one video.

    Attributes:
        video_path: Downloaded MP4
        caption_path: Auto-generated captions, None when the video has none
    """

    video_path: Path
    caption_path: Path | None = None


class Downloader:
    """Fetches a video and its auto-generated captions with yt-dlp."""

    def __init__(self, ytdlp_path: str = "yt-dlp", timeout: int = DOWNLOAD_TIMEOUT):
        self.ytdlp_path = ytdlp_path
        self.timeout = timeout

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        cmd = [self.ytdlp_path] + args
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise DownloadError(f"yt-dlp timed out after {self.timeout} seconds") from e
        except OSError as e:
            raise DownloadError(f"Failed to run yt-dlp at {self.ytdlp_path}: {e}") from e

        if result.returncode != 0:
            error_msg = (result.stderr or result.stdout or "Unknown error").strip()
            raise DownloadError(f"yt-dlp failed: {error_msg[-500:]}")
        return result

    def download_video(self, url: str, output_path: Path, format_selector: str) -> Path:
        """Download the video, merged to MP4.

        An existing file is reused.

        Raises:
            DownloadError: If yt-dlp fails or produces no file
        """
        output_path = Path(output_path)
        if output_path.exists():
            logger.info("Video file already exists, skipping download", extra={"path": str(output_path)})
            return output_path

        output_path.parent.mkdir(parents=True, exist_ok=True)
        self._run([
            "--ignore-errors",
            "--merge-output-format", "mp4",
            "--geo-bypass",
            "--no-check-certificate",
            "--format", format_selector,
            "--concurrent-fragments", "8",
            "-o", str(output_path),
            url,
        ])
        if not output_path.exists():
            raise DownloadError("yt-dlp finished without writing the video", context={"url": url})
        return output_path

    def download_captions(self, url: str, output_stem: Path, language: str) -> Path | None:
        """Download auto-generated captions as WEBVTT.

        yt-dlp names the file ``<stem>.<language>.vtt``.

        Returns:
            Caption file, or None when the video has no captions in that language
        """
        output_stem = Path(output_stem)
        caption_path = output_stem.with_name(f"{output_stem.name}.{language}.vtt")
        if caption_path.exists():
            return caption_path

        try:
            self._run([
                "--write-auto-sub",
                "--sub-lang", language,
                "--sub-format", "vtt",
                "--skip-download",
                "-o", str(output_stem),
                url,
            ])
        except DownloadError as e:
            logger.warning(f"Caption download failed: {e.message}", extra={"url": url})
            return None

        if not caption_path.exists():
            logger.warning(f"No '{language}' captions available", extra={"url": url})
            return None
        return caption_path

    def fetch(self, url: str, output_dir: Path, video_id: str, format_selector: str, language: str) -> DownloadedSource:
        """Download video and captions into ``output_dir``."""
        output_dir = Path(output_dir)
        video_path = self.download_video(url, output_dir / f"{video_id}.mp4", format_selector)
        caption_path = self.download_captions(url, output_dir / video_id, language)
        return DownloadedSource(video_path, caption_path)
