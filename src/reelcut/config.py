"""Configuration loading for reelcut.

Loads the application configuration (tool paths, semantic service settings and
channels) from a JSON file into Pydantic models.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from reelcut.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("config.json")
DEFAULT_MODEL = "gpt-4o-mini"


class OpenAISettings(BaseModel):
    """Semantic service (chat completions) settings."""

    key: str = ""
    model: str = DEFAULT_MODEL
    # None = the public OpenAI endpoint
    base_url: str | None = None
    cuts_timeout: float = 120.0
    metadata_timeout: float = 60.0

    def resolved_key(self) -> str | None:
        """Return the configured key, falling back to OPENAI_API_KEY."""
        return self.key or os.environ.get("OPENAI_API_KEY") or None


class EncodingProfile(BaseModel):
    """Re-encode settings shared by burn-in and overlay renditions."""

    video_codec: str = "libx264"
    preset: str = "ultrafast"
    tune: str = "fastdecode"
    crf: int = 28
    audio_codec: str = "aac"
    threads: int = 0
    # Width the cut is scaled to before being centred on a template
    overlay_width: int = 1080

    def to_args(self) -> list[str]:
        """Build FFmpeg output arguments for this profile."""
        return [
            "-c:a", self.audio_codec,
            "-c:v", self.video_codec,
            "-preset", self.preset,
            "-tune", self.tune,
            "-crf", str(self.crf),
            "-threads", str(self.threads),
        ]


class BurnInStyle(BaseModel):
    """Caption style forced onto burned-in subtitles."""

    font_size: int = 22
    # ASS alignment; 2 = bottom centre
    alignment: int = 2

    def force_style(self) -> str:
        return f"FontSize={self.font_size},Alignment={self.alignment}"


class ChannelConfig(BaseModel):
    """Configuration for one source channel.

    Field aliases match the keys used in ``config.json``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    channel_id: str = Field(default="", alias="Channel_id")
    url: str = ""
    folder: Path = Path(".")
    vertical_base: str = Field(default="", alias="video_base_vertical")
    horizontal_base: str = Field(default="", alias="video_base_horizontal")
    cover_base: str = Field(default="", alias="video_cover")
    description: str = ""
    last_check: str = ""
    topics: str = ""
    excerpts: int = Field(default=1, ge=0)
    # Target minutes per excerpt
    stretch_time: int = Field(default=1, ge=0)
    # 0 = every video in the feed
    video_limit: int = Field(default=0, ge=0)
    font: str = ""
    font_size: str = ""
    font_color: str = ""
    font_effect: str = ""
    upload_to_youtube: bool = False
    ytdlp_format: str = "bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]/best"
    caption_language: str = "pt"

    def for_video(self, video_id: str) -> "ChannelConfig":
        """Return a copy of this channel pinned to a single video."""
        return self.model_copy(update={"channel_id": f"v={video_id}"})


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ytdlp: str = "yt-dlp"
    ffmpeg: str | None = None
    ffprobe: str | None = None
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    channels: list[ChannelConfig] = Field(default_factory=list)
    segment_bound_seconds: int = Field(default=1200, gt=0)
    max_parallel_videos: int = Field(default=1, ge=1)
    encoding: EncodingProfile = Field(default_factory=EncodingProfile)
    burn_in: BurnInStyle = Field(default_factory=BurnInStyle)
    credentials_path: Path = Path("credentials.json")
    token_path: Path = Path("youtube-token.json")

    def get_channel(self, channel_id: str) -> ChannelConfig:
        """Look up a channel by its configured ``id``.

        Raises:
            ConfigurationError: If no channel has that id
        """
        for channel in self.channels:
            if channel.id == channel_id:
                return channel
        raise ConfigurationError(
            f"Channel with ID '{channel_id}' not found",
            context={"known": [c.id for c in self.channels]},
        )


def load_config(path: Path | str = DEFAULT_CONFIG_PATH) -> AppConfig:
    """Load application configuration from a JSON file.

    Args:
        path: Path to the configuration file

    Returns:
        Validated AppConfig

    Raises:
        ConfigurationError: If the file is missing, is not JSON or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    try:
        return AppConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e
