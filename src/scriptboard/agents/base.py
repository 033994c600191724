"""Base class for Claude-backed generation agents."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, Optional, TypeVar

from anthropic import APIError

from ..config import config
from ..errors import MalformedUpstreamResponse, UpstreamError
from ..services.anthropic import AnthropicClient

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """An agent turns a typed request into a typed result with one Claude call.

    Subclasses provide the name, the system prompt and ``run``; this class
    handles the call itself and pulling a JSON object out of the reply.
    """

    def __init__(
        self,
        client: Optional[AnthropicClient] = None,
        model: Optional[str] = None,
    ) -> None:
        self._model = model or config.default_model
        self._client = client or AnthropicClient(model=self._model)
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        ...

    @property
    def model(self) -> str:
        return self._model

    @abstractmethod
    def run(self, input_data: InputT) -> OutputT:
        ...

    def _create_message(
        self,
        prompt: str,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        """Send ``prompt`` with this agent's system prompt.

        Raises:
            UpstreamError: If the Claude API call fails.
        """
        try:
            reply = self._client.create_message(
                prompt=prompt,
                max_tokens=max_tokens,
                system=self.system_prompt,
                temperature=temperature,
            )
        except APIError as e:
            status = getattr(e, "status_code", None)
            self._logger.error(f"Claude call failed ({status or type(e).__name__}): {e}")
            raise UpstreamError(f"AI generation failed: {status or e}", status_code=status) from e

        self._logger.debug(f"Reply: {len(reply)} chars")
        return reply

    def _parse_json_object(self, reply: str) -> Dict[str, Any]:
        """Decode the JSON object in a reply.

        Raises:
            MalformedUpstreamResponse: If there is no JSON object.
        """
        try:
            data = json.loads(extract_json(reply))
        except json.JSONDecodeError as e:
            self._logger.error(f"Reply is not JSON: {e}")
            self._logger.debug(f"Raw reply: {reply}")
            raise MalformedUpstreamResponse("AI reply was not valid JSON") from e

        if not isinstance(data, dict):
            raise MalformedUpstreamResponse("AI reply was not a JSON object")
        return data


def extract_json(text: str) -> str:
    """Return the JSON part of a reply that may wrap it in a code fence or prose."""
    for fence in ("```json", "```"):
        start = text.find(fence)
        if start == -1:
            continue
        start += len(fence)
        end = text.find("```", start)
        if end > start:
            return text[start:end].strip()

    start = text.find("{")
    if start == -1:
        return text.strip()

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return text.strip()
