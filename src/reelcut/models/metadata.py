"""Publishing metadata model for reelcut."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

MAX_DESCRIPTION_LENGTH = 250
MAX_TAGS = 10


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        key = value.casefold()
        if value and key not in seen:
            seen.add(key)
            result.append(value)
    return result


class VideoMetadata(BaseModel):
    """SEO metadata generated for a cut.

    Attributes:
        title: Publishable title
        description: Short description, at most 250 characters
        tags: Search tags without ``#``, deduplicated, at most 10
        hashtags: Hashtags with a leading ``#``, deduplicated
    """

    title: str
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    hashtags: list[str] = Field(default_factory=list)

    @field_validator("description")
    @classmethod
    def _truncate_description(cls, value: str) -> str:
        value = value.strip()
        if len(value) > MAX_DESCRIPTION_LENGTH:
            return value[:MAX_DESCRIPTION_LENGTH].rstrip()
        return value

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        tags = [tag.strip().lstrip("#").strip() for tag in value]
        return _dedupe(tags)[:MAX_TAGS]

    @field_validator("hashtags")
    @classmethod
    def _normalize_hashtags(cls, value: list[str]) -> list[str]:
        hashtags = []
        for tag in value:
            tag = tag.strip().replace(" ", "")
            if tag and not tag.startswith("#"):
                tag = "#" + tag
            hashtags.append(tag)
        return _dedupe(hashtags)

    def publish_description(self) -> str:
        """Description followed by the hashtags line, as uploaded."""
        if not self.hashtags:
            return self.description
        return f"{self.description}\n\n{' '.join(self.hashtags)}".strip()
