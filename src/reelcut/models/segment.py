"""Media segment model for reelcut."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class MediaSegment(BaseModel):
    """A bounded slice of a source video plus its caption file.

    When ``is_source`` is true the segment is the original file itself and
    must never be deleted by segment cleanup.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)
    media_path: Path
    caption_path: Path | None = None
    start_offset: float = Field(default=0.0, ge=0.0)
    duration_bound: float = Field(gt=0.0)
    is_source: bool = False

    @property
    def has_captions(self) -> bool:
        return self.caption_path is not None

    @property
    def label(self) -> str:
        return f"p{self.index}"
