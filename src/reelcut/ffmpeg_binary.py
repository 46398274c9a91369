"""External tool discovery for reelcut.

Resolves the FFmpeg, FFprobe and yt-dlp executables. FFmpeg falls back to
the binary bundled with imageio-ffmpeg when nothing is configured or on PATH.
"""

from __future__ import annotations

import platform
import shutil
import subprocess
from pathlib import Path
from typing import NamedTuple

from pydantic import BaseModel, Field


class ToolInfo(NamedTuple):
    """Information about an external tool installation."""

    name: str
    path: str | None
    version: str | None
    source: str  # "custom", "system", "imageio", or "not_found"

    @property
    def available(self) -> bool:
        return self.path is not None


class ToolPaths(BaseModel):
    """Configured locations of the external tools.

    Each entry may be an absolute path or a bare command name.
    """

    ffmpeg: str | None = Field(default=None, description="FFmpeg executable")
    ffprobe: str | None = Field(default=None, description="FFprobe executable")
    ytdlp: str | None = Field(default=None, description="yt-dlp executable")
    prefer_system: bool = Field(
        default=True,
        description="Prefer a system FFmpeg over the bundled imageio-ffmpeg binary",
    )


def _resolve_custom(value: str | None) -> str | None:
    """Resolve a configured path or command name to an executable."""
    if not value:
        return None
    if Path(value).exists():
        return value
    return shutil.which(value)


def _get_ffmpeg_from_imageio() -> str | None:
    try:
        import imageio_ffmpeg
        return imageio_ffmpeg.get_ffmpeg_exe()
    except (ImportError, RuntimeError):
        return None


def _get_ffprobe_from_imageio() -> str | None:
    """Look for ffprobe next to imageio-ffmpeg's FFmpeg.

    imageio-ffmpeg does not bundle ffprobe itself.
    """
    ffmpeg_path = _get_ffmpeg_from_imageio()
    if ffmpeg_path is None:
        return None

    name = "ffprobe.exe" if platform.system() == "Windows" else "ffprobe"
    candidate = Path(ffmpeg_path).parent / name
    return str(candidate) if candidate.exists() else None


def _locate(
    custom: str | None,
    command: str,
    bundled,
    prefer_system: bool,
) -> tuple[str | None, str]:
    custom_path = _resolve_custom(custom)
    if custom_path:
        return custom_path, "custom"

    order = [("system", lambda: shutil.which(command)), ("imageio", bundled)]
    if not prefer_system:
        order.reverse()

    for source, finder in order:
        path = finder()
        if path:
            return path, source
    return None, "not_found"


def get_ffmpeg_path(paths: ToolPaths | None = None) -> str | None:
    """Get the path to the FFmpeg executable.

    Searches the configured path, then the system PATH and the imageio-ffmpeg
    bundle (in the order selected by ``prefer_system``).

    Args:
        paths: Optional configured tool locations.

    Returns:
        Path to FFmpeg, or None if not found.
    """
    paths = paths or ToolPaths()
    return _locate(paths.ffmpeg, "ffmpeg", _get_ffmpeg_from_imageio, paths.prefer_system)[0]


def get_ffprobe_path(paths: ToolPaths | None = None) -> str | None:
    """Get the path to the FFprobe executable.

    Args:
        paths: Optional configured tool locations.

    Returns:
        Path to FFprobe, or None if not found.
    """
    paths = paths or ToolPaths()
    return _locate(paths.ffprobe, "ffprobe", _get_ffprobe_from_imageio, paths.prefer_system)[0]


def get_ytdlp_path(paths: ToolPaths | None = None) -> str | None:
    """Get the path to the yt-dlp executable."""
    paths = paths or ToolPaths()
    return _resolve_custom(paths.ytdlp) or shutil.which("yt-dlp")


def _get_version(executable: str, flag: str = "-version") -> str | None:
    """Get the version string reported by an executable."""
    try:
        result = subprocess.run(
            [executable, flag],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        return None

    if result.returncode != 0:
        return None
    first_line = result.stdout.split("\n")[0].strip()
    # e.g. "ffmpeg version 6.0-full_build-www.gyan.dev"
    if "version" in first_line.lower():
        parts = first_line.split("version")
        if len(parts) > 1 and parts[1].strip():
            return parts[1].strip().split()[0]
    return first_line or None


def get_tool_report(paths: ToolPaths | None = None) -> list[ToolInfo]:
    """Describe every external tool reelcut needs.

    Args:
        paths: Optional configured tool locations.

    Returns:
        One ToolInfo per tool (ffmpeg, ffprobe, yt-dlp).
    """
    paths = paths or ToolPaths()
    report = []

    for name, custom, bundled in (
        ("ffmpeg", paths.ffmpeg, _get_ffmpeg_from_imageio),
        ("ffprobe", paths.ffprobe, _get_ffprobe_from_imageio),
    ):
        path, source = _locate(custom, name, bundled, paths.prefer_system)
        version = _get_version(path) if path else None
        report.append(ToolInfo(name, path, version, source))

    ytdlp = get_ytdlp_path(paths)
    report.append(
        ToolInfo(
            "yt-dlp",
            ytdlp,
            _get_version(ytdlp, "--version") if ytdlp else None,
            ("custom" if _resolve_custom(paths.ytdlp) else "system") if ytdlp else "not_found",
        )
    )
    return report
