"""Shared plumbing for Claude-backed agents."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from ..config import Config, config as default_config
from ..errors import UpstreamError
from ..services.anthropic import AnthropicClient

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """An agent turns typed input into typed output via one Claude prompt.

    Subclasses provide the name, the system prompt and `run`. The Claude
    client is built from settings unless one is injected.
    """

    reply_error = "Invalid reply format"

    def __init__(
        self,
        client: Optional[AnthropicClient] = None,
        settings: Optional[Config] = None,
    ) -> None:
        """Build the agent around an injected or newly created Claude client.

        Raises:
            ConfigurationError: If no client is given and ANTHROPIC_API_KEY is not set.
        """
        self._client = client or AnthropicClient(settings=settings or default_config)
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        ...

    @abstractmethod
    def run(self, input_data: InputT) -> OutputT:
        ...

    def _ask_json(self, prompt: str, max_tokens: int = 4096, temperature: float = 0.7) -> Any:
        """Send a prompt and decode the JSON value in the reply.

        Raises:
            UpstreamError: If the reply holds no parseable JSON.
        """
        self._logger.debug(f"Prompt: {len(prompt)} chars")
        reply = self._client.create_message(
            prompt=prompt,
            max_tokens=max_tokens,
            system=self.system_prompt,
            temperature=temperature,
        )
        self._logger.debug(f"Reply: {len(reply)} chars")

        try:
            return json.loads(extract_json(reply))
        except json.JSONDecodeError as e:
            self._logger.error(f"Unparseable reply: {e}")
            self._logger.debug(f"Raw reply: {reply}")
            raise UpstreamError(self.reply_error, details=str(e)) from e


def extract_json(reply: str) -> str:
    """Pull a JSON object out of a reply that may wrap it in markdown or prose."""
    for fence in ("```json", "```"):
        start = reply.find(fence)
        if start != -1:
            start += len(fence)
            end = reply.find("```", start)
            if end > start:
                return reply[start:end].strip()

    start = reply.find("{")
    if start != -1:
        depth = 0
        for i in range(start, len(reply)):
            if reply[i] == "{":
                depth += 1
            elif reply[i] == "}":
                depth -= 1
                if depth == 0:
                    return reply[start:i + 1]

    return reply.strip()
