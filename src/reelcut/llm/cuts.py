"""Cut proposal adapter.

Asks the semantic service for excerpt windows in a segment's caption document
and turns the answer into CutWindow objects. Windows are returned in the
service's order and are not validated here.
"""

from __future__ import annotations

import time
from typing import Any, Callable

from pydantic import ValidationError as PydanticValidationError

from reelcut.errors import RetryConfig, TransportError, attempt_with_config
from reelcut.llm.client import ChatRequest, SemanticClient
from reelcut.llm.prompts import DEFAULT_CUT_PROMPT, CutPromptBuilder
from reelcut.logging import get_logger
from reelcut.models.cut import CutWindow

logger = get_logger(__name__)

CUTS_TIMEOUT = 120.0


def parse_cuts(data: dict[str, Any]) -> list[CutWindow]:
    """Convert a decoded ``{"cuts": [...]}`` document into windows.

    Items that do not describe a window are dropped with a warning.

    Raises:
        TransportError: If the document has no ``cuts`` list
    """
    items = data.get("cuts")
    if not isinstance(items, list):
        raise TransportError("Response has no 'cuts' list", context={"keys": sorted(data)})

    cuts = []
    for position, item in enumerate(items, start=1):
        try:
            cuts.append(CutWindow.model_validate(item))
        except PydanticValidationError as e:
            logger.warning(
                f"Ignoring malformed cut #{position}",
                extra={"error": e.errors(include_url=False)[0]["msg"]},
            )
    return cuts


class CutProposer:
    """Proposes cut windows for a caption document."""

    def __init__(
        self,
        client: SemanticClient,
        retry: RetryConfig | None = None,
        prompt_builder: CutPromptBuilder | None = None,
        timeout: float = CUTS_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.retry = retry or RetryConfig()
        self.prompt_builder = prompt_builder or DEFAULT_CUT_PROMPT
        self.timeout = timeout
        self._sleep = sleep

    def build_request(
        self,
        caption_document: str,
        topics: str,
        excerpts: int,
        stretch_minutes: int,
    ) -> ChatRequest:
        builder = self.prompt_builder
        if not caption_document.lstrip().startswith("WEBVTT"):
            builder = CutPromptBuilder(
                caption_format="SRT",
                tolerance_minutes=builder.tolerance_minutes,
            )
        return ChatRequest(
            system_prompt=builder.build_system_prompt(topics, excerpts, stretch_minutes),
            user_prompt=builder.build_user_prompt(caption_document, topics, stretch_minutes),
            timeout=self.timeout,
        )

    def propose(
        self,
        caption_document: str,
        topics: str,
        excerpts: int,
        stretch_minutes: int,
    ) -> list[CutWindow]:
        """Ask for excerpt windows.

        Args:
            caption_document: Caption track of the segment
            topics: Topics the excerpts should cover
            excerpts: Minimum number of excerpts wanted
            stretch_minutes: Target excerpt length in minutes

        Returns:
            Proposed windows, or an empty list when every attempt failed
        """
        if not caption_document.strip():
            logger.info("No captions to analyse, skipping cut proposal")
            return []

        request = self.build_request(caption_document, topics, excerpts, stretch_minutes)

        result = attempt_with_config(
            lambda: parse_cuts(self.client.complete_json(request)),
            self.retry,
            sleep=self._sleep,
        )

        if not result.succeeded:
            logger.error(
                f"No cuts after {result.attempts} attempts: {result.error}",
                extra={"attempts": result.attempts},
            )
            return []

        logger.info(f"Service proposed {len(result.value)} cuts", extra={"attempts": result.attempts})
        return result.value
