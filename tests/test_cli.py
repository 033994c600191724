"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from scriptboard import __version__
from scriptboard import agents as agents_module
from scriptboard.cli import app
from scriptboard.config import config
from scriptboard.errors import UpstreamError
from scriptboard.models import Project

from conftest import make_project

runner = CliRunner()


@pytest.fixture
def project_file(tmp_path):
    project = make_project(durations=("30s", "30s", "1:00"))
    project.set_image(1, "frame-1.png")
    path = tmp_path / "project.yaml"
    project.to_yaml(path)
    return path


class FakeWriter:
    error = None

    def __init__(self, *args, **kwargs):
        self.model = "fake-model"

    def run(self, request):
        if FakeWriter.error is not None:
            raise FakeWriter.error
        return make_project(durations=("10s", "30s")).script


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_status(project_file):
    result = runner.invoke(app, ["status", "--project", str(project_file)])

    assert result.exit_code == 0
    assert "How Coffee Is Made" in result.output
    assert "Images: 1/3" in result.output
    assert "Scene 3: 60s (50%)" in result.output


def test_status_missing_project(tmp_path):
    result = runner.invoke(app, ["status", "--project", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "No project found" in result.output


def test_script_writes_project(tmp_path, monkeypatch):
    monkeypatch.setattr(agents_module, "ScriptWriterAgent", FakeWriter)
    monkeypatch.setattr(config, "anthropic_api_key", "test-key")
    FakeWriter.error = None
    output = tmp_path / "out" / "project.yaml"

    result = runner.invoke(app, ["script", "how coffee is made", "--output", str(output)])

    assert result.exit_code == 0, result.output
    project = Project.from_yaml(output)
    assert project.topic == "how coffee is made"
    assert project.total_duration == "40 sec"
    assert "(75%)" in result.output


def test_script_rejects_invalid_topic(tmp_path):
    result = runner.invoke(app, ["script", "ab", "--output", str(tmp_path / "p.yaml")])

    assert result.exit_code == 1
    assert "at least 3 characters" in result.output


def test_script_reports_upstream_failure(tmp_path, monkeypatch):
    monkeypatch.setattr(agents_module, "ScriptWriterAgent", FakeWriter)
    monkeypatch.setattr(config, "anthropic_api_key", "test-key")
    FakeWriter.error = UpstreamError("AI generation failed: 529")

    result = runner.invoke(app, ["script", "coffee", "--output", str(tmp_path / "p.yaml")])

    FakeWriter.error = None
    assert result.exit_code == 1
    assert "AI generation failed" in result.output
    assert not (tmp_path / "p.yaml").exists()


def test_script_requires_api_key(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "anthropic_api_key", "")

    result = runner.invoke(app, ["script", "coffee", "--output", str(tmp_path / "p.yaml")])

    assert result.exit_code == 1
    assert "ANTHROPIC_API_KEY" in result.output


def test_export_pdf(project_file, tmp_path):
    output = tmp_path / "report.pdf"

    result = runner.invoke(app, ["export-pdf", "--project", str(project_file), "--output", str(output)])

    assert result.exit_code == 0, result.output
    assert output.read_bytes().startswith(b"%PDF")


def test_storyboard_requires_gateway_key(project_file, monkeypatch):
    monkeypatch.setattr(config, "image_gateway_api_key", "")

    result = runner.invoke(app, ["storyboard", "--project", str(project_file)])

    assert result.exit_code == 1
    assert "IMAGE_GATEWAY_API_KEY" in result.output


def test_play_runs_timeline(tmp_path):
    path = tmp_path / "project.yaml"
    make_project(durations=("1s", "1s")).to_yaml(path)

    result = runner.invoke(app, ["play", "--project", str(path), "--speed", "4"])

    assert result.exit_code == 0, result.output
    assert result.output.index("Scene 1") < result.output.index("Scene 2")
    assert "Playback complete" in result.output


def test_preview_renders_planned_segments(project_file, tmp_path, monkeypatch):
    from scriptboard.editor import compositor

    rendered = {}

    def fake_render(project, output_path, size, fps):
        rendered.update(path=output_path, size=size, fps=fps)

    monkeypatch.setattr(compositor, "render_preview", fake_render)
    output = tmp_path / "preview.mp4"

    result = runner.invoke(
        app, ["preview", "-p", str(project_file), "-o", str(output), "--fps", "12", "--width", "640", "--height", "360"]
    )

    assert result.exit_code == 0, result.output
    assert "Scenes: 3 (2 without image)" in result.output
    assert "Duration: 120.0s" in result.output
    assert rendered == {"path": output, "size": (640, 360), "fps": 12}


def test_serve_runs_uvicorn(monkeypatch):
    import uvicorn

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append(kwargs))

    result = runner.invoke(app, ["serve", "--port", "9000"])

    assert result.exit_code == 0, result.output
    assert calls == [{"host": "127.0.0.1", "port": 9000, "log_level": "info"}]
