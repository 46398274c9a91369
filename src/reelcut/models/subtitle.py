"""Subtitle models for reelcut."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class SubtitleEntry(BaseModel):
    """One timed caption cue.

    Times are float seconds relative to the media the caption belongs to.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=1)
    start: float = Field(ge=0.0)
    end: float = Field(ge=0.0)
    text: str = ""

    @model_validator(mode="after")
    def _end_not_before_start(self) -> "SubtitleEntry":
        if self.end < self.start:
            raise ValueError(f"Entry {self.index} ends ({self.end}) before it starts ({self.start})")
        return self

    @property
    def duration(self) -> float:
        return self.end - self.start

    def overlaps(self, start: float, end: float) -> bool:
        """Check if this entry touches the closed range ``[start, end]``."""
        return self.start <= end and self.end >= start

    def within(self, start: float, end: float) -> bool:
        """Check if this entry lies entirely inside ``[start, end]``."""
        return self.start >= start and self.end <= end
