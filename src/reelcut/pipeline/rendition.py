"""Rendition pipeline.

Derives the cover image, the vertical clip and the publishable horizontal clip
from a materialized cut. Each variant is produced only when the channel has a
template for it, and a failure in one variant does not stop the others.
"""

from __future__ import annotations

from pathlib import Path

from reelcut.config import ChannelConfig
from reelcut.errors import EncodingError
from reelcut.ffmpeg import MediaTool, wrap_title
from reelcut.logging import get_logger
from reelcut.models.rendition import RenditionVariant
from reelcut.pipeline.materializer import MaterializedCut

logger = get_logger(__name__)

DEFAULT_COVER_FONT_SIZE = "36"
DEFAULT_COVER_FONT_COLOR = "white"


class RenditionPipeline:
    """Renders template-based variants of materialized cuts."""

    def __init__(self, media_tool: MediaTool, channel: ChannelConfig):
        self.media_tool = media_tool
        self.channel = channel

    def templates(self) -> dict[RenditionVariant, str]:
        """Configured template per optional variant."""
        configured = {
            RenditionVariant.COVER: self.channel.cover_base,
            RenditionVariant.VERTICAL: self.channel.vertical_base,
            RenditionVariant.HORIZONTAL_PUBLISHABLE: self.channel.horizontal_base,
        }
        return {variant: path for variant, path in configured.items() if path}

    def render(self, cut: MaterializedCut, output_dir: Path) -> dict[RenditionVariant, Path]:
        """Render every configured variant of a cut.

        Args:
            cut: Materialized cut with its horizontal clip
            output_dir: Video output directory

        Returns:
            Paths of the variants that were produced, including the
            horizontal clip itself
        """
        output_dir = Path(output_dir)
        produced = {RenditionVariant.HORIZONTAL: cut.clip_path}

        for variant, template in self.templates().items():
            target = variant.artifact_path(output_dir, cut.stem)
            try:
                if variant is RenditionVariant.COVER:
                    self._render_cover(Path(template), target, cut.title)
                else:
                    self.media_tool.compose_overlay(Path(template), cut.clip_path, target)
            except EncodingError as e:
                logger.error(
                    f"Could not render {variant.value}: {e.message}",
                    extra={"cut": cut.title, "variant": variant.value},
                )
                continue
            produced[variant] = target
            logger.info(f"Rendered {variant.value}", extra={"cut": cut.title})

        cut.artifacts.update(produced)
        return produced

    def _render_cover(self, template: Path, target: Path, title: str) -> Path:
        return self.media_tool.render_cover(
            template,
            target,
            wrap_title(title),
            font_size=self.channel.font_size or DEFAULT_COVER_FONT_SIZE,
            font_color=self.channel.font_color or DEFAULT_COVER_FONT_COLOR,
            font_file=self.channel.font,
            effect=self.channel.font_effect,
        )
