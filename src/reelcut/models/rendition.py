"""Rendition variants for reelcut."""

from __future__ import annotations

from enum import Enum


class RenditionVariant(str, Enum):
    """Output variants derived from a materialized cut.

    The value is the sub-directory of the video output directory that holds
    artifacts of that variant.
    """

    COVER = "covers"
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"
    HORIZONTAL_PUBLISHABLE = "horizontal-yt"

    @property
    def suffix(self) -> str:
        return ".jpg" if self is RenditionVariant.COVER else ".mp4"

    def artifact_path(self, output_dir, stem: str):
        """Path of this variant's artifact for a cut stem."""
        return output_dir / self.value / f"{stem}{self.suffix}"
