"""External service integrations."""

from .anthropic import AnthropicClient
from .imagen import ImagenClient, portrait_prompt
from .runcomfy import RunComfyClient

__all__ = ["AnthropicClient", "ImagenClient", "RunComfyClient", "portrait_prompt"]
