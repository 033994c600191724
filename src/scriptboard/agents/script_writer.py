"""Script writer agent: topic in, scene-by-scene video script out."""

from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from ..errors import MalformedUpstreamResponse
from ..models import VideoScript
from .base import BaseAgent


SYSTEM_PROMPT = """You are a professional video scriptwriter. Write engaging, structured video scripts.

Respond with JSON only, using exactly this structure:
{
  "title": "Video title",
  "scenes": [
    {
      "sceneNumber": 1,
      "duration": "10 seconds",
      "voiceOver": "What the narrator says",
      "visualDescription": "What is shown on screen",
      "notes": "Optional production notes"
    }
  ]
}

Keep scripts clear and visually descriptive. A short video usually has 4-6 scenes."""


@dataclass
class ScriptRequest:
    """Input data for the script writer."""

    topic: str
    num_scenes: Optional[int] = None
    style: Optional[str] = None


class ScriptWriterAgent(BaseAgent[ScriptRequest, VideoScript]):
    """Agent that writes a video script for a topic."""

    @property
    def name(self) -> str:
        """Return the agent's name."""
        return "ScriptWriterAgent"

    @property
    def system_prompt(self) -> str:
        """Return the system prompt for script writing."""
        return SYSTEM_PROMPT

    def run(self, input_data: ScriptRequest) -> VideoScript:
        """Write a script for the requested topic.

        Args:
            input_data: Topic and optional scene count and style.

        Returns:
            The validated script.

        Raises:
            UpstreamError: If the Claude API call fails.
            MalformedUpstreamResponse: If the reply is not a valid script.
        """
        self._logger.info(f"Writing script for: '{input_data.topic}'")

        response = self._create_message(
            prompt=self._build_prompt(input_data),
            max_tokens=4096,
            temperature=0.8,
        )

        script = self._parse_response(response)

        self._logger.info(f"Wrote {len(script.scenes)} scenes: '{script.title}'")
        return script

    def _build_prompt(self, input_data: ScriptRequest) -> str:
        """Build the user prompt for script writing."""
        prompt_parts = [f"Create a video script about: {input_data.topic}"]

        if input_data.num_scenes:
            prompt_parts.append(f"NUMBER OF SCENES: {input_data.num_scenes}")

        if input_data.style:
            prompt_parts.append(f"STYLE: {input_data.style}")

        return "\n".join(prompt_parts)

    def _parse_response(self, response: str) -> VideoScript:
        """Turn Claude's reply into a VideoScript.

        Raises:
            MalformedUpstreamResponse: If the reply is not a complete script.
        """
        data = self._parse_json_object(response)
        try:
            return VideoScript.model_validate(data)
        except ValidationError as e:
            self._logger.error(f"Generated script failed validation: {e}")
            raise MalformedUpstreamResponse("Generated script is incomplete") from e
