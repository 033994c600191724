"""External service integrations."""

from .anthropic import AnthropicClient
from .images import (
    ImageResult,
    StoryboardImageClient,
    build_storyboard_prompt,
    load_image_bytes,
    save_image,
)

__all__ = [
    "AnthropicClient",
    "ImageResult",
    "StoryboardImageClient",
    "build_storyboard_prompt",
    "load_image_bytes",
    "save_image",
]
