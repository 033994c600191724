"""AI agents for content generation."""

from .base import BaseAgent
from .script_writer import ScriptRequest, ScriptWriterAgent

__all__ = ["BaseAgent", "ScriptRequest", "ScriptWriterAgent"]
