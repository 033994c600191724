"""Tests for the storyboard preview planning."""

import pytest
from PIL import Image

from scriptboard.editor.compositor import ken_burns_frame, ken_burns_transform, plan_preview, render_preview

from conftest import make_project


def test_plan_follows_scene_windows():
    project = make_project(durations=("10s", "0:05", "1:00"))
    project.set_image(2, "two.png")

    segments = plan_preview(project)

    assert [(s.scene_number, s.start, s.duration) for s in segments] == [
        (1, 0.0, 10.0),
        (2, 10.0, 5.0),
        (3, 15.0, 60.0),
    ]
    assert [s.image_url for s in segments] == [None, "two.png", None]


def test_plan_drops_zero_length_scenes():
    project = make_project(durations=("10s", "tbd", "5s"))

    segments = plan_preview(project)

    assert [s.scene_index for s in segments] == [0, 2]
    assert segments[1].start == 10.0


def test_ken_burns_transform():
    assert ken_burns_transform(0.0) == (1.0, 0.0)
    scale, offset = ken_burns_transform(1.0)
    assert scale == pytest.approx(1.2)
    assert offset == pytest.approx(-0.05)
    assert ken_burns_transform(2.0) == ken_burns_transform(1.0)
    assert ken_burns_transform(-1.0) == ken_burns_transform(0.0)


def test_ken_burns_frame_has_output_size():
    image = Image.new("RGB", (640, 480), (10, 20, 30))

    for progress in (0.0, 0.5, 1.0):
        frame = ken_burns_frame(image, (320, 180), progress)
        assert frame.shape == (180, 320, 3)


def test_render_needs_a_timed_scene(tmp_path):
    project = make_project(durations=("", "n/a"))

    with pytest.raises(ValueError):
        render_preview(project, tmp_path / "preview.mp4")


def test_oversized_image_becomes_black_clip(monkeypatch):
    import io

    from moviepy import ColorClip

    from scriptboard.editor.compositor import PreviewSegment, _scene_clip

    buffer = io.BytesIO()
    Image.new("RGB", (64, 36)).save(buffer, format="PNG")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    segment = PreviewSegment(scene_index=0, scene_number=1, start=0.0, duration=2.0, image_url="huge.png")

    clip = _scene_clip(segment, (32, 18), lambda url: buffer.getvalue())

    assert isinstance(clip, ColorClip)
    clip.close()
