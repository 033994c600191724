"""Scene timeline playback engine.

The engine keeps no per-frame state. Elapsed time is always derived from a
wall-clock anchor, and every control operation (play, seek, speed change)
re-anchors it so that pause, seek and speed changes stay consistent with
each other.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Sequence, Tuple

from .duration import parse_duration

if TYPE_CHECKING:
    from ..models import Scene, StoryboardImage

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class PlaybackState(str, Enum):
    """Playback state of a timeline."""
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class SceneFrame:
    """The scene showing at some instant and how far into it we are."""

    scene: "Scene"
    scene_index: int
    scene_progress: float
    image_url: Optional[str] = None


def scene_windows(scenes: Sequence["Scene"]) -> List[Tuple[int, int]]:
    """Return the (start_ms, end_ms) window of each scene on the timeline."""
    windows: List[Tuple[int, int]] = []
    cursor = 0
    for scene in scenes:
        duration_ms = parse_duration(scene.duration) * 1000
        windows.append((cursor, cursor + duration_ms))
        cursor += duration_ms
    return windows


def images_for_scenes(
    scenes: Sequence["Scene"], storyboard_images: Sequence["StoryboardImage"]
) -> List[Optional[str]]:
    """Line storyboard images up with scenes by scene number."""
    by_number = {image.scene_number: image.image_url for image in storyboard_images}
    return [by_number.get(scene.scene_number) for scene in scenes]


class FrameScheduler(ABC):
    """Schedules the engine's next advance tick."""

    @abstractmethod
    def request_frame(self, callback: Callable[[], None]) -> Any:
        """Run ``callback`` on the next frame and return a cancellable handle."""
        ...

    @abstractmethod
    def cancel_frame(self, handle: Any) -> None:
        """Cancel a pending frame. Unknown or spent handles are ignored."""
        ...


class ManualFrameScheduler(FrameScheduler):
    """Frame scheduler driven explicitly by the caller.

    Used by tests and offline rendering: nothing runs until :meth:`step`.
    """

    def __init__(self) -> None:
        self._callbacks: Dict[int, Callable[[], None]] = {}
        self._next_handle = 0

    @property
    def pending(self) -> int:
        """Number of frames waiting to run."""
        return len(self._callbacks)

    def request_frame(self, callback: Callable[[], None]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        return handle

    def cancel_frame(self, handle: Any) -> None:
        self._callbacks.pop(handle, None)

    def step(self) -> int:
        """Run every frame pending right now. Returns how many ran."""
        callbacks = list(self._callbacks.values())
        self._callbacks.clear()
        for callback in callbacks:
            callback()
        return len(callbacks)


class AsyncioFrameScheduler(FrameScheduler):
    """Frame scheduler backed by asyncio event-loop timers."""

    def __init__(self, fps: float = 60.0, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self._interval = 1.0 / fps
        self._loop = loop

    def request_frame(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(self._interval, callback)

    def cancel_frame(self, handle: Any) -> None:
        handle.cancel()


class TimelineEngine:
    """Plays an ordered list of scenes against a wall clock.

    Callbacks:
        on_scene_change: called with a :class:`SceneFrame` whenever the
            resolved scene differs from the one last signalled.
        on_complete: called once when playback runs past the last scene.

    Control methods must be called from the same thread as the scheduler.
    """

    def __init__(
        self,
        scenes: Sequence["Scene"],
        images: Optional[Sequence[Optional[str]]] = None,
        on_scene_change: Optional[Callable[[SceneFrame], None]] = None,
        on_complete: Optional[Callable[[], None]] = None,
        scheduler: Optional[FrameScheduler] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._scenes = list(scenes)
        self._images = list(images or [])
        self._windows = scene_windows(self._scenes)
        self._total_ms = self._windows[-1][1] if self._windows else 0

        self.on_scene_change = on_scene_change
        self.on_complete = on_complete
        self._scheduler = scheduler or AsyncioFrameScheduler()
        self._clock = clock or _monotonic_ms

        self._state = PlaybackState.STOPPED
        self._current_index = 0
        self._signaled_index: Optional[int] = None
        self._anchor = 0.0
        self._paused_offset = 0.0
        self._speed = 1.0
        self._pending: Any = None
        self._destroyed = False

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == PlaybackState.PLAYING

    @property
    def current_scene_index(self) -> int:
        return self._current_index

    @property
    def playback_speed(self) -> float:
        return self._speed

    @property
    def total_duration_ms(self) -> int:
        return self._total_ms

    @property
    def elapsed_ms(self) -> float:
        """Timeline position in milliseconds."""
        if self.is_playing:
            return self._paused_offset + (self._clock() - self._anchor) * self._speed
        return self._paused_offset

    def play(self) -> None:
        if self._destroyed or self.is_playing:
            return

        self._state = PlaybackState.PLAYING
        self._reanchor()
        logger.debug(f"Playing from {self._paused_offset:.0f}ms at {self._speed}x")
        self._advance()

    def pause(self) -> None:
        if not self.is_playing:
            return

        self._paused_offset = self.elapsed_ms
        self._state = PlaybackState.PAUSED
        self._cancel_pending()
        logger.debug(f"Paused at {self._paused_offset:.0f}ms")

    def restart(self) -> None:
        self.pause()
        self._paused_offset = 0.0
        self._current_index = 0
        self._signaled_index = None
        self.play()

    def seek_to_scene(self, index: int) -> None:
        """Jump to the start of scene ``index``. Out-of-range indexes are ignored."""
        if index < 0 or index >= len(self._scenes):
            return

        self._paused_offset = float(self._windows[index][0])
        self._current_index = index
        if self.is_playing:
            self._reanchor()

    def set_playback_speed(self, speed: float) -> None:
        if speed <= 0:
            raise ValueError(f"Playback speed must be positive, got {speed}")

        current = self.elapsed_ms
        self._speed = speed
        self._paused_offset = current
        if self.is_playing:
            self._reanchor()

    def frame_at(self, elapsed_ms: float) -> Optional[SceneFrame]:
        """Resolve a timeline position to a scene, or None past the end."""
        for index, (start, end) in enumerate(self._windows):
            if end > start and elapsed_ms < end:
                return SceneFrame(
                    scene=self._scenes[index],
                    scene_index=index,
                    scene_progress=(elapsed_ms - start) / (end - start),
                    image_url=self._images[index] if index < len(self._images) else None,
                )
        return None

    def destroy(self) -> None:
        self.pause()
        self._cancel_pending()
        self.on_scene_change = None
        self.on_complete = None
        self._destroyed = True

    def _reanchor(self) -> None:
        # Playing position is _paused_offset plus scaled wall time since the anchor.
        self._anchor = self._clock()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._scheduler.cancel_frame(self._pending)
            self._pending = None

    def _advance(self) -> None:
        self._pending = None
        if not self.is_playing:
            return

        frame = self.frame_at(self.elapsed_ms)
        if frame is None:
            self._complete()
            return

        self._render(frame)
        # Callbacks may pause or destroy the engine.
        if self.is_playing:
            self._pending = self._scheduler.request_frame(self._advance)

    def _render(self, frame: SceneFrame) -> None:
        self._current_index = frame.scene_index
        if frame.scene_index == self._signaled_index:
            return
        self._signaled_index = frame.scene_index
        if self.on_scene_change is not None:
            self.on_scene_change(frame)

    def _complete(self) -> None:
        self._state = PlaybackState.STOPPED
        self._paused_offset = 0.0
        self._current_index = 0
        self._signaled_index = None
        logger.debug("Timeline complete")
        if self.on_complete is not None:
            self.on_complete()
