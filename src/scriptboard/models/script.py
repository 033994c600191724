"""Video script data model."""

from typing import List
from pydantic import BaseModel, Field

from .scene import Scene


class VideoScript(BaseModel):
    """An AI-written script: a title and its ordered scenes."""

    title: str = Field(..., min_length=1, max_length=200, description="Script title")
    scenes: List[Scene] = Field(..., min_length=1, description="Scenes in playback order")

    class Config:
        """Pydantic config."""
        frozen = False
        populate_by_name = True
        str_strip_whitespace = True
