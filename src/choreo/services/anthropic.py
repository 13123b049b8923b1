"""Claude client used by the scene analysis agent."""

import logging
import time
from typing import Optional

from anthropic import Anthropic, APIConnectionError, APIError, RateLimitError

from ..config import Config, config as default_config
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

RETRYABLE = (RateLimitError, APIConnectionError)


class AnthropicClient:
    """Sends single-turn prompts to Claude.

    Rate limits and dropped connections are retried with exponential
    backoff; every other API failure surfaces immediately as UpstreamError.
    """

    def __init__(
        self,
        settings: Optional[Config] = None,
        model: Optional[str] = None,
    ) -> None:
        """Create the SDK client.

        Args:
            settings: Supplies the key, timeout and retry limits.
            model: Overrides settings.default_model.

        Raises:
            ConfigurationError: If ANTHROPIC_API_KEY is not set.
        """
        settings = settings or default_config
        settings.require_anthropic()

        self._sdk = Anthropic(api_key=settings.anthropic_api_key, timeout=settings.request_timeout)
        self.model = model or settings.default_model
        self._attempts = settings.max_retries
        self._backoff = settings.retry_delay

    def create_message(
        self,
        prompt: str,
        max_tokens: int = 4096,
        system: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        """Send one user prompt and return the reply text.

        Raises:
            UpstreamError: On a non-retryable API error, or once retries run out.
        """
        request = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        attempt = 0
        while True:
            attempt += 1
            try:
                response = self._sdk.messages.create(**request)
            except RETRYABLE as e:
                if attempt >= self._attempts:
                    logger.error(f"Claude unreachable after {attempt} attempts: {e}")
                    raise UpstreamError(f"Scene analysis service unavailable: {e}") from e
                delay = self._backoff * (2 ** (attempt - 1))
                logger.warning(f"{type(e).__name__} from Claude, retry {attempt} in {delay:.1f}s")
                time.sleep(delay)
                continue
            except APIError as e:
                logger.error(f"Claude API error: {e}")
                raise UpstreamError(
                    f"Scene analysis failed: {e}",
                    vendor_status=getattr(e, "status_code", None),
                ) from e
            return _reply_text(response)


def _reply_text(response) -> str:
    texts = [block.text for block in response.content if getattr(block, "text", None)]
    if not texts:
        raise UpstreamError("Claude returned an empty reply")
    return "".join(texts)
