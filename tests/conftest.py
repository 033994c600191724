"""Shared fixtures."""

import pytest

from scriptboard.models import Project, Scene, VideoScript


def make_scene(number: int, duration: str = "10 seconds", **overrides) -> Scene:
    data = {
        "sceneNumber": number,
        "duration": duration,
        "voiceOver": f"Narration for scene {number}",
        "visualDescription": f"Wide shot for scene {number}",
    }
    data.update(overrides)
    return Scene.model_validate(data)


def make_project(durations=("10 seconds", "10 seconds", "10 seconds"), user_id="user-1") -> Project:
    script = VideoScript(
        title="How Coffee Is Made",
        scenes=[make_scene(i + 1, duration) for i, duration in enumerate(durations)],
    )
    return Project.from_script("coffee production", script, user_id=user_id)


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock(1_000_000)


@pytest.fixture
def project():
    return make_project()
