"""Cut window models for reelcut."""

from __future__ import annotations

import re
import unicodedata

from pydantic import BaseModel, ConfigDict, Field

from reelcut.errors import CutWindowError

_UNSAFE_CHARS = re.compile(r"[^\w\s-]", re.UNICODE)
_SEPARATORS = re.compile(r"[\s_-]+")


def safe_filename(title: str, max_length: int = 80) -> str:
    """Derive a filesystem-safe identifier from a free-form title.

    Accents are folded to ASCII, punctuation is dropped and whitespace becomes
    underscores. An empty result falls back to ``"cut"``.
    """
    folded = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    cleaned = _UNSAFE_CHARS.sub("", folded).strip()
    slug = _SEPARATORS.sub("_", cleaned).strip("_")
    return slug[:max_length].rstrip("_") or "cut"


class CutWindow(BaseModel):
    """An excerpt proposed by the semantic service.

    ``begin`` and ``end`` are integer seconds relative to the owning segment.
    The window is advisory until ``validate_against`` has accepted it.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    begin: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.begin

    @property
    def safe_name(self) -> str:
        return safe_filename(self.title)

    def validate_against(self, duration: float) -> None:
        """Reject windows that are empty or fall outside the segment.

        Args:
            duration: Probed duration of the owning segment in seconds

        Raises:
            CutWindowError: If the window cannot be cut from the segment
        """
        context = {"cut": self.title, "begin": self.begin, "end": self.end, "duration": duration}
        if self.begin < 0:
            raise CutWindowError("Cut begins before the segment", context=context)
        if self.end <= self.begin:
            raise CutWindowError("Cut ends before it begins", context=context)
        if self.begin > duration or self.end > duration:
            raise CutWindowError("Cut extends past the end of the segment", context=context)


class CutsResponse(BaseModel):
    """Shape of the cut proposal document returned by the service."""

    cuts: list[CutWindow] = Field(default_factory=list)
