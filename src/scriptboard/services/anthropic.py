"""Claude client used by the script writer."""

import logging
import time
from typing import Optional

from anthropic import Anthropic, APIConnectionError, APIError, APIStatusError, RateLimitError

from ..config import config
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# Overloaded and transient server errors are worth another attempt.
RETRYABLE_STATUS_CODES = frozenset({500, 502, 503, 529})


def is_retryable(error: APIError) -> bool:
    if isinstance(error, (RateLimitError, APIConnectionError)):
        return True
    return isinstance(error, APIStatusError) and error.status_code in RETRYABLE_STATUS_CODES


class AnthropicClient:
    """Thin wrapper over the Anthropic SDK with exponential backoff."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY.
            model: Claude model. Defaults to SCRIPTBOARD_MODEL.
            max_retries: Total attempts per request, at least one.
            retry_delay: First backoff delay in seconds; doubles per attempt.

        Raises:
            ConfigurationError: If no API key is available.
        """
        api_key = api_key or config.anthropic_api_key
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY not set")

        self._client = Anthropic(api_key=api_key)
        self._model = model or config.default_model
        self._attempts = max(1, max_retries)
        self._retry_delay = retry_delay

    @property
    def model(self) -> str:
        return self._model

    def create_message(
        self,
        prompt: str,
        max_tokens: int = 4096,
        system: Optional[str] = None,
        temperature: float = 0.7,
    ) -> str:
        """Send a single-turn prompt and return the reply text.

        Raises:
            APIError: The last error once retries are exhausted, or the first
                non-retryable one.
        """
        request = {
            "model": self._model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        attempt = 1
        while True:
            logger.debug(f"Claude request {attempt}/{self._attempts} ({len(prompt)} chars)")
            try:
                response = self._client.messages.create(**request)
            except APIError as e:
                if not is_retryable(e) or attempt >= self._attempts:
                    logger.error(f"Claude request failed after {attempt} attempt(s): {e}")
                    raise
                delay = self._retry_delay * 2 ** (attempt - 1)
                logger.warning(f"{type(e).__name__} from Claude, retrying in {delay:.1f}s")
                time.sleep(delay)
                attempt += 1
                continue

            return "".join(
                block.text for block in response.content if getattr(block, "text", None)
            )
