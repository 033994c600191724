"""Project data model."""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

from ..timeline.duration import calculate_total_duration
from .scene import StoryboardImage
from .script import VideoScript


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Project(BaseModel):
    """A saved script with its storyboard images."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Project UUID")
    user_id: Optional[str] = Field(None, description="Owner's user id")
    title: str = Field(..., min_length=1, max_length=200, description="Project title")
    topic: str = Field(..., min_length=1, max_length=1000, description="Topic the script was written for")
    script: VideoScript = Field(..., description="Generated script")
    storyboard_images: List[StoryboardImage] = Field(
        default_factory=list, description="At most one image per scene"
    )
    total_duration: Optional[str] = Field(None, description="Formatted total duration")
    created_at: datetime = Field(default_factory=_utcnow, description="Creation time")
    updated_at: Optional[datetime] = Field(None, description="Last modification time")

    class Config:
        """Pydantic config."""
        frozen = False

    @classmethod
    def from_script(
        cls, topic: str, script: VideoScript, user_id: Optional[str] = None
    ) -> "Project":
        """Create a project for a freshly generated script."""
        return cls(
            user_id=user_id,
            title=script.title,
            topic=topic,
            script=script,
            total_duration=calculate_total_duration(script.scenes),
        )

    @classmethod
    def from_yaml(cls, path: Path) -> "Project":
        """Load project from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.model_validate(data)

    def to_yaml(self, path: Path) -> None:
        """Save project to YAML file."""
        with open(path, "w") as f:
            yaml.safe_dump(
                self.model_dump(mode="json", by_alias=True),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    def image_for_scene(self, scene_number: int) -> Optional[str]:
        """Return the image URL for a scene, if one has been generated."""
        for image in self.storyboard_images:
            if image.scene_number == scene_number:
                return image.image_url
        return None

    def image_urls(self) -> List[Optional[str]]:
        """Return image URLs parallel to the script's scenes."""
        return [self.image_for_scene(scene.scene_number) for scene in self.script.scenes]

    def set_image(self, scene_number: int, image_url: str) -> None:
        """Attach an image to a scene, replacing any previous one."""
        self.storyboard_images = [
            image for image in self.storyboard_images if image.scene_number != scene_number
        ]
        self.storyboard_images.append(StoryboardImage(scene_number=scene_number, image_url=image_url))
        self.storyboard_images.sort(key=lambda image: image.scene_number)
        self.touch()

    def touch(self) -> None:
        """Mark the project as modified."""
        self.updated_at = _utcnow()
