"""Duration parsing, formatting and per-scene shares."""

import math
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from ..models import Scene

_COLON_RE = re.compile(r"^(\d+):(\d+)$")
_SECONDS_RE = re.compile(r"(\d+)\s*(?:s|sec|second|seconds)")
_MINUTES_RE = re.compile(r"(\d+)\s*(?:m|min|minute|minutes)")
_NUMBER_RE = re.compile(r"(\d+)")


@dataclass(frozen=True)
class ScenePercentage:
    """Share of the total running time taken by one scene."""

    scene_number: int
    percentage: int


def parse_duration(text: Optional[str]) -> int:
    """Parse a free-form duration string into whole seconds.

    Supports "1:30", "30s", "45 seconds", "2 min", "1 min 30 sec" and bare
    numbers (taken as seconds). Anything else, including empty input, is 0.
    """
    if not text:
        return 0

    value = text.lower().strip()

    colon = _COLON_RE.match(value)
    if colon:
        return int(colon.group(1)) * 60 + int(colon.group(2))

    minutes = _MINUTES_RE.search(value)
    seconds = _SECONDS_RE.search(value)

    if seconds and not minutes:
        return int(seconds.group(1))

    if minutes:
        extra = int(seconds.group(1)) if seconds else 0
        return int(minutes.group(1)) * 60 + extra

    number = _NUMBER_RE.search(value)
    if number:
        return int(number.group(1))

    return 0


def format_duration(total_seconds: int, fmt: str = "long") -> str:
    """Format seconds as "2 min 30 sec" (long) or "2:30" (short)."""
    if fmt not in ("long", "short"):
        raise ValueError(f"Unknown duration format: {fmt}. Use 'long' or 'short'")

    if total_seconds == 0:
        return "0 sec"

    minutes, seconds = divmod(total_seconds, 60)

    if fmt == "short":
        if minutes == 0:
            return f"{seconds}s"
        if seconds == 0:
            return f"{minutes}m"
        return f"{minutes}:{seconds:02d}"

    if minutes == 0:
        return f"{seconds} sec"
    if seconds == 0:
        return f"{minutes} min"
    return f"{minutes} min {seconds} sec"


def get_total_seconds(scenes: Sequence["Scene"]) -> int:
    """Sum of all scene durations in seconds."""
    return sum(parse_duration(scene.duration) for scene in scenes)


def calculate_total_duration(scenes: Sequence["Scene"]) -> str:
    """Total running time of all scenes, formatted long."""
    return format_duration(get_total_seconds(scenes))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_scene_percentages(scenes: Sequence["Scene"]) -> List[ScenePercentage]:
    """Percentage of the total taken by each scene.

    Each share is rounded on its own, so the results need not add up to 100.
    """
    total = get_total_seconds(scenes)
    if total == 0:
        return []

    return [
        ScenePercentage(
            scene_number=scene.scene_number,
            percentage=_round_half_up(parse_duration(scene.duration) / total * 100),
        )
        for scene in scenes
    ]
