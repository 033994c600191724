"""Data models for scripts, storyboards and projects."""

from .scene import Scene, StoryboardImage
from .script import VideoScript
from .project import Project
from .share import Collaborator, PublicShare, Role

__all__ = [
    "Scene",
    "StoryboardImage",
    "VideoScript",
    "Project",
    "Collaborator",
    "PublicShare",
    "Role",
]
