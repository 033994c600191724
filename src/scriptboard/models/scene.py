"""Scene and storyboard image data models."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator

MAX_VISUAL_DESCRIPTION_LENGTH = 2000


class Scene(BaseModel):
    """One narrative and visual beat of a video script."""

    scene_number: int = Field(
        ..., alias="sceneNumber", gt=0, strict=True, description="1-based scene number"
    )
    duration: str = Field(default="", description="Free-form duration, e.g. '10 seconds' or '1:30'")
    voice_over: str = Field(default="", alias="voiceOver", description="Narration text")
    visual_description: str = Field(
        ..., alias="visualDescription", description="What is shown on screen"
    )
    notes: Optional[str] = Field(None, description="Optional production notes")

    class Config:
        """Pydantic config."""
        frozen = False
        populate_by_name = True
        str_strip_whitespace = True

    @field_validator("duration", mode="before")
    @classmethod
    def _coerce_duration(cls, value):
        # Generated scripts sometimes give a bare number of seconds.
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("visual_description")
    @classmethod
    def _check_visual_description(cls, value: str) -> str:
        if not value:
            raise ValueError("Visual description is required")
        if len(value) > MAX_VISUAL_DESCRIPTION_LENGTH:
            raise ValueError("Visual description too long")
        return value


class StoryboardImage(BaseModel):
    """A generated still illustrating one scene."""

    scene_number: int = Field(..., alias="sceneNumber", description="Scene this image belongs to")
    image_url: str = Field(
        ..., alias="imageUrl", description="http(s) URL, data URI or local file path"
    )

    class Config:
        """Pydantic config."""
        frozen = False
        populate_by_name = True
