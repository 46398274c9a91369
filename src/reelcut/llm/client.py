"""Chat-completions transport for reelcut.

Wraps the OpenAI SDK so that one call is exactly one attempt: SDK-level
retries are disabled and every failure surfaces as a TransportError, leaving
retry policy to :func:`reelcut.errors.attempt`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from reelcut.config import DEFAULT_MODEL, OpenAISettings
from reelcut.errors import ConfigurationError, TransportError
from reelcut.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ChatRequest:
    """One chat-completions request.

    Attributes:
        system_prompt: Instructions for the model
        user_prompt: The content to act on
        timeout: Request timeout in seconds
    """

    system_prompt: str
    user_prompt: str
    timeout: float = 120.0

    def to_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": self.user_prompt},
        ]


class SemanticClient:
    """Sends JSON-mode chat-completions requests.

    Requires an API key in the configuration or the OPENAI_API_KEY
    environment variable.
    """

    def __init__(self, settings: OpenAISettings | None = None, client: Any = None):
        """Initialize the client.

        Args:
            settings: Semantic service settings
            client: Optional pre-built OpenAI client (used by tests)
        """
        self.settings = settings or OpenAISettings()
        self._client = client

    @property
    def model(self) -> str:
        return self.settings.model or DEFAULT_MODEL

    def is_available(self) -> bool:
        """Check if an API key is configured."""
        return self._client is not None or self.settings.resolved_key() is not None

    def _get_client(self):
        """Get or create the OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            api_key = self.settings.resolved_key()
            if not api_key:
                raise ConfigurationError(
                    "OpenAI API key not set. Set 'openai.key' in config.json or OPENAI_API_KEY."
                )
            self._client = OpenAI(
                api_key=api_key,
                base_url=self.settings.base_url,
                max_retries=0,
            )
        return self._client

    def complete_json(self, request: ChatRequest) -> dict[str, Any]:
        """Make one chat-completions call and decode its JSON content.

        Args:
            request: Prompts and timeout

        Returns:
            Decoded JSON object from the first choice

        Raises:
            TransportError: On transport failure, error status, missing
                choices or content that is not a JSON object
        """
        import openai

        client = self._get_client()
        context = {"model": self.model}

        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=request.to_messages(),
                response_format={"type": "json_object"},
                timeout=request.timeout,
            )
        except openai.OpenAIError as e:
            raise TransportError(f"Chat completion failed: {e}", context=context) from e

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise TransportError("Chat completion returned no choices", context=context)

        content = choices[0].message.content
        if not content:
            raise TransportError("Chat completion returned empty content", context=context)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise TransportError(f"Response is not valid JSON: {e}", context=context) from e

        if not isinstance(data, dict):
            raise TransportError("Response JSON is not an object", context=context)

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                "Chat completion finished",
                extra={"model": self.model, "tokens": getattr(usage, "total_tokens", None)},
            )
        return data
