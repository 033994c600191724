"""Storyboard preview compositor: a Ken Burns slideshow of the scenes."""

import io
import logging
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
from moviepy import ColorClip, VideoClip, concatenate_videoclips
from PIL import Image

from ..config import config
from ..errors import ImageLoadError
from ..models import Project
from ..services.images import ImageLoader, load_image_bytes
from ..timeline.engine import scene_windows

logger = logging.getLogger(__name__)

# Zoom from 1.0 to 1.2 and pan 5% of the width to the left over a scene.
KEN_BURNS_ZOOM = 0.2
KEN_BURNS_PAN = -0.05


@dataclass(frozen=True)
class PreviewSegment:
    """One scene's slot in the preview."""

    scene_index: int
    scene_number: int
    start: float
    duration: float
    image_url: Optional[str] = None


def ken_burns_transform(progress: float) -> Tuple[float, float]:
    """Return (scale, horizontal offset as a fraction of width) at ``progress``."""
    progress = min(max(progress, 0.0), 1.0)
    return 1.0 + progress * KEN_BURNS_ZOOM, progress * KEN_BURNS_PAN


def plan_preview(project: Project) -> List[PreviewSegment]:
    """Lay the project's scenes out on the timeline, dropping zero-length ones."""
    scenes = project.script.scenes
    images = project.image_urls()
    segments: List[PreviewSegment] = []

    for index, (start_ms, end_ms) in enumerate(scene_windows(scenes)):
        if end_ms <= start_ms:
            logger.debug(f"Skipping scene {scenes[index].scene_number}: zero duration")
            continue
        segments.append(
            PreviewSegment(
                scene_index=index,
                scene_number=scenes[index].scene_number,
                start=start_ms / 1000.0,
                duration=(end_ms - start_ms) / 1000.0,
                image_url=images[index],
            )
        )

    return segments


def ken_burns_frame(
    image: Image.Image, size: Tuple[int, int], progress: float
) -> np.ndarray:
    """Render one frame of ``image`` zoomed and panned for ``progress``."""
    out_w, out_h = size
    scale, offset = ken_burns_transform(progress)

    # Cover the output frame, then zoom in.
    cover = max(out_w / image.width, out_h / image.height) * scale
    scaled_w = max(out_w, round(image.width * cover))
    scaled_h = max(out_h, round(image.height * cover))
    scaled = image.resize((scaled_w, scaled_h), Image.LANCZOS)

    left = (scaled_w - out_w) / 2 - offset * out_w
    left = int(min(max(left, 0), scaled_w - out_w))
    top = (scaled_h - out_h) // 2
    return np.asarray(scaled.crop((left, top, left + out_w, top + out_h)))


def _scene_clip(
    segment: PreviewSegment,
    size: Tuple[int, int],
    image_loader: ImageLoader,
) -> VideoClip:
    image: Optional[Image.Image] = None
    if segment.image_url:
        try:
            image = Image.open(io.BytesIO(image_loader(segment.image_url))).convert("RGB")
        except (ImageLoadError, Image.DecompressionBombError, OSError, ValueError) as e:
            logger.warning(f"Failed to load image for scene {segment.scene_number}: {e}")

    if image is None:
        return ColorClip(size=size, color=(0, 0, 0), duration=segment.duration)

    def frame_at(t: float) -> np.ndarray:
        return ken_burns_frame(image, size, t / segment.duration)

    return VideoClip(frame_at, duration=segment.duration)


def render_preview(
    project: Project,
    output_path: Path,
    size: Tuple[int, int] = (1280, 720),
    fps: int = 24,
    image_loader: Optional[ImageLoader] = None,
) -> Path:
    """Render the storyboard preview video.

    Args:
        project: Project whose scenes and images to show.
        output_path: Path for the output file.
        size: Output (width, height) in pixels.
        fps: Frames per second.
        image_loader: Callable returning image bytes for a URL.

    Returns:
        Path to the rendered video.

    Raises:
        ValueError: If no scene has a non-zero duration.
    """
    segments = plan_preview(project)
    if not segments:
        raise ValueError("No scenes with a duration to preview")

    image_loader = image_loader or partial(load_image_bytes, timeout=config.image_timeout)
    clips = [_scene_clip(segment, size, image_loader) for segment in segments]
    video = concatenate_videoclips(clips, method="compose") if len(clips) > 1 else clips[0]

    # Ensure output directory exists
    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        logger.info(f"Rendering {len(clips)} scenes ({video.duration:.1f}s) to {output_path}")
        video.write_videofile(str(output_path), fps=fps, codec="libx264", audio=False)
    finally:
        video.close()

    return output_path
