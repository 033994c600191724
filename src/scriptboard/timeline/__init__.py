"""Scene durations and timeline playback."""

from .duration import (
    ScenePercentage,
    parse_duration,
    format_duration,
    get_total_seconds,
    calculate_total_duration,
    calculate_scene_percentages,
)
from .engine import (
    PlaybackState,
    SceneFrame,
    FrameScheduler,
    ManualFrameScheduler,
    AsyncioFrameScheduler,
    TimelineEngine,
    scene_windows,
    images_for_scenes,
)

__all__ = [
    # Duration
    "ScenePercentage",
    "parse_duration",
    "format_duration",
    "get_total_seconds",
    "calculate_total_duration",
    "calculate_scene_percentages",
    # Engine
    "PlaybackState",
    "SceneFrame",
    "FrameScheduler",
    "ManualFrameScheduler",
    "AsyncioFrameScheduler",
    "TimelineEngine",
    "scene_windows",
    "images_for_scenes",
]
