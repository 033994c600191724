"""Validation of externally supplied payloads.

Every validator returns a :class:`ValidationResult` carrying either the
normalised model or a human-readable error string. None of them raise.
"""

import re
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..models import Role, Scene, StoryboardImage, VideoScript
from ..services.images import REMOTE_IMAGE_PREFIXES

ModelT = TypeVar("ModelT", bound=BaseModel)

MIN_TOPIC_LENGTH = 3
MAX_TOPIC_LENGTH = 1000
MAX_EXPIRY_DAYS = 365

_SCRIPT_TAG_RE = re.compile(r"<[^>]*script", re.IGNORECASE)
_UUID_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


@dataclass
class ValidationResult(Generic[ModelT]):
    """Outcome of validating one payload."""

    success: bool
    data: Optional[ModelT] = None
    error: Optional[str] = None


class GenerateScriptInput(BaseModel):
    """Body of a script generation request."""

    topic: str

    @field_validator("topic", mode="before")
    @classmethod
    def _check_topic(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Topic is required and must be a string")
        topic = value.strip()
        if len(topic) < MIN_TOPIC_LENGTH:
            raise ValueError(f"Topic must be at least {MIN_TOPIC_LENGTH} characters")
        if len(topic) > MAX_TOPIC_LENGTH:
            raise ValueError(f"Topic must be less than {MAX_TOPIC_LENGTH} characters")
        if _SCRIPT_TAG_RE.search(topic):
            raise ValueError("Invalid characters in topic")
        return topic


class GenerateStoryboardInput(BaseModel):
    """Body of a storyboard image request."""

    scene: Scene


class GenerateShareLinkInput(BaseModel):
    """Body of a share link request."""

    project_id: str
    expires_in_days: Optional[int] = Field(None, strict=True, ge=1, le=MAX_EXPIRY_DAYS)

    @field_validator("project_id", mode="before")
    @classmethod
    def _check_project_id(cls, value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise ValueError("Project ID is required")
        if not _UUID_RE.match(value):
            raise ValueError("Invalid project ID format")
        return value


class ProjectInput(BaseModel):
    """Body of a save-project request."""

    topic: str = Field(..., min_length=1, max_length=MAX_TOPIC_LENGTH)
    script: VideoScript
    storyboard_images: List[StoryboardImage] = Field(default_factory=list)

    class Config:
        """Pydantic config."""
        str_strip_whitespace = True

    @field_validator("storyboard_images")
    @classmethod
    def remote_images_only(cls, images: List[StoryboardImage]) -> List[StoryboardImage]:
        for image in images:
            if not image.image_url.startswith(REMOTE_IMAGE_PREFIXES):
                raise ValueError(
                    f"imageUrl for scene {image.scene_number} must be an http(s) URL or data URI"
                )
        return images


class CollaboratorInput(BaseModel):
    """Body of an add-collaborator request."""

    user_id: str = Field(..., min_length=1)
    role: Role

    class Config:
        """Pydantic config."""
        str_strip_whitespace = True


def _format_error(error: dict) -> str:
    cause = error.get("ctx", {}).get("error")
    message = str(cause) if error["type"] == "value_error" and cause else error["msg"]
    path = ".".join(str(part) for part in error["loc"])
    return f"{path}: {message}" if path else message


def validate_input(schema: Type[ModelT], data: Any) -> ValidationResult[ModelT]:
    """Validate ``data`` against a pydantic schema without raising."""
    if not isinstance(data, dict):
        return ValidationResult(success=False, error="Invalid request body")

    try:
        model = schema.model_validate(data)
    except ValidationError as e:
        message = "; ".join(_format_error(error) for error in e.errors())
        return ValidationResult(success=False, error=message)

    return ValidationResult(success=True, data=model)


def validate_generate_script_input(body: Any) -> ValidationResult[GenerateScriptInput]:
    return validate_input(GenerateScriptInput, body)


def validate_scene_input(body: Any) -> ValidationResult[GenerateStoryboardInput]:
    return validate_input(GenerateStoryboardInput, body)


def validate_share_link_input(body: Any) -> ValidationResult[GenerateShareLinkInput]:
    return validate_input(GenerateShareLinkInput, body)
