"""SEO metadata generation for cuts."""

from __future__ import annotations

import time
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from reelcut.errors import RetryConfig, TransportError, attempt_with_config
from reelcut.llm.client import ChatRequest, SemanticClient
from reelcut.llm.prompts import DEFAULT_METADATA_PROMPT, MetadataPromptBuilder
from reelcut.logging import get_logger
from reelcut.models.metadata import VideoMetadata

logger = get_logger(__name__)

METADATA_TIMEOUT = 60.0


def parse_metadata(data: dict[str, Any], fallback_title: str) -> VideoMetadata:
    """Build VideoMetadata from a decoded response.

    A missing title falls back to the cut title.

    Raises:
        TransportError: If the document does not describe metadata
    """
    payload = dict(data)
    if not payload.get("title"):
        payload["title"] = fallback_title
    try:
        return VideoMetadata.model_validate(payload)
    except PydanticValidationError as e:
        raise TransportError(f"Response is not valid metadata: {e}") from e


class MetadataGenerator:
    """Generates title, description, tags and hashtags for a cut."""

    def __init__(
        self,
        client: SemanticClient,
        retry: RetryConfig | None = None,
        prompt_builder: MetadataPromptBuilder | None = None,
        timeout: float = METADATA_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.retry = retry or RetryConfig()
        self.prompt_builder = prompt_builder or DEFAULT_METADATA_PROMPT
        self.timeout = timeout
        self._sleep = sleep

    def generate(self, title: str, transcript: str, topics: str) -> VideoMetadata | None:
        """Generate metadata for one cut.

        Args:
            title: Cut title proposed with the window
            transcript: Plain text spoken inside the cut
            topics: Channel topics

        Returns:
            VideoMetadata, or None when every attempt failed
        """
        request = ChatRequest(
            system_prompt=self.prompt_builder.build_system_prompt(topics),
            user_prompt=self.prompt_builder.build_user_prompt(transcript, title),
            timeout=self.timeout,
        )

        result = attempt_with_config(
            lambda: parse_metadata(self.client.complete_json(request), title),
            self.retry,
            sleep=self._sleep,
        )

        if not result.succeeded:
            logger.error(
                f"No metadata after {result.attempts} attempts: {result.error}",
                extra={"cut": title},
            )
            return None
        return result.value
