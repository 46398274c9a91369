"""Data models for reelcut.

This module provides Pydantic models for captions, segments, cuts and metadata.
"""

from __future__ import annotations

from reelcut.models.cut import CutsResponse, CutWindow, safe_filename
from reelcut.models.metadata import VideoMetadata
from reelcut.models.rendition import RenditionVariant
from reelcut.models.segment import MediaSegment
from reelcut.models.subtitle import SubtitleEntry

__all__ = [
    # Caption models
    "SubtitleEntry",
    # Segment models
    "MediaSegment",
    # Cut models
    "CutWindow",
    "CutsResponse",
    "safe_filename",
    # Output models
    "VideoMetadata",
    "RenditionVariant",
]
