"""CLI entry point for Scriptboard."""

import asyncio
import logging
import typer
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from . import __version__
from .config import config
from .errors import ScriptboardError
from .models import Project

app = typer.Typer(
    name="scriptboard",
    help="AI-powered video script and storyboard generator",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"scriptboard version {__version__}")
        raise typer.Exit()


def load_project(path: Path) -> Project:
    """Load a project YAML or exit with a message."""
    if not path.exists():
        typer.echo(f"❌ No project found at {path}")
        typer.echo("   Run 'scriptboard script' to create a new project")
        raise typer.Exit(1)

    try:
        return Project.from_yaml(path)
    except (OSError, ValueError, ValidationError) as e:
        typer.echo(f"❌ Error loading project: {e}")
        raise typer.Exit(1)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Scriptboard - Turn a topic into a video script, storyboard and report."""
    pass


@app.command()
def script(
    topic: str = typer.Argument(
        ...,
        help="What the video is about"
    ),
    scenes: Optional[int] = typer.Option(
        None,
        "--scenes",
        "-s",
        help="Number of scenes (the writer decides if not specified)",
        min=1,
        max=20
    ),
    style: Optional[str] = typer.Option(
        None,
        "--style",
        help="Tone or style hints (e.g., 'upbeat explainer', 'documentary')"
    ),
    output: Path = typer.Option(
        Path("project.yaml"),
        "--output",
        "-o",
        help="Output project file path"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Write a scene-by-scene video script for a topic using AI."""
    from .agents import ScriptRequest, ScriptWriterAgent
    from .guards import validate_generate_script_input
    from .timeline import calculate_scene_percentages, format_duration, get_total_seconds

    setup_logging(verbose)

    validation = validate_generate_script_input({"topic": topic})
    if not validation.success:
        typer.echo(f"❌ {validation.error}")
        raise typer.Exit(1)
    topic = validation.data.topic

    typer.echo(f"🎬 Writing script: {topic}")
    if style:
        typer.echo(f"   Style: {style}")

    try:
        config.validate_required()
        agent = ScriptWriterAgent()
        typer.echo(f"   Using model: {agent.model}")
        typer.echo("   Generating scenes...")
        video_script = agent.run(ScriptRequest(topic=topic, num_scenes=scenes, style=style))
    except ScriptboardError as e:
        typer.echo(f"❌ Error writing script: {e}")
        raise typer.Exit(1)

    project = Project.from_script(topic, video_script)

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        project.to_yaml(output)
        typer.echo(f"\n✅ Project saved: {output}")
    except OSError as e:
        typer.echo(f"❌ Error saving project: {e}")
        raise typer.Exit(1)

    typer.echo(f"\n📋 {video_script.title}")
    typer.echo(f"   Scenes: {len(video_script.scenes)}")
    typer.echo(f"   Total duration: {project.total_duration}")

    shares = {
        share.scene_number: share.percentage
        for share in calculate_scene_percentages(video_script.scenes)
    }
    typer.echo("\n📽️  Scene breakdown:")
    for scene in video_script.scenes:
        share = f" ({shares[scene.scene_number]}%)" if scene.scene_number in shares else ""
        typer.echo(f"   • Scene {scene.scene_number}: {scene.duration or 'no duration'}{share}")
        preview = scene.voice_over[:70] + "..." if len(scene.voice_over) > 70 else scene.voice_over
        if preview:
            typer.echo(f"     {preview}")

    total = get_total_seconds(video_script.scenes)
    if total:
        typer.echo(f"\n   Runtime at 1x: {format_duration(total, 'short')}")


@app.command()
def storyboard(
    project_file: Path = typer.Option(
        Path("project.yaml"),
        "--project",
        "-p",
        help="Path to project YAML file"
    ),
    output: Path = typer.Option(
        Path("./storyboard"),
        "--output",
        "-o",
        help="Output directory for storyboard images"
    ),
    parallel: int = typer.Option(
        3,
        "--parallel",
        help="Maximum concurrent generations",
        min=1,
        max=10
    ),
    skip_existing: bool = typer.Option(
        False,
        "--skip-existing",
        "-k",
        help="Skip scenes that already have an image"
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Limit number of scenes to generate (for testing)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Generate a storyboard image for each scene.

    One scene failing does not stop the others; images that were generated
    are recorded in the project either way.
    """
    from concurrent.futures import ThreadPoolExecutor, as_completed
    from .services.images import StoryboardImageClient, save_image

    setup_logging(verbose)
    project = load_project(project_file)
    typer.echo(f"🖼️  Storyboard: {project.title}")

    try:
        config.validate_image_required()
        client = StoryboardImageClient()
        typer.echo(f"   Model: {client.model}")
    except ScriptboardError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    scenes_to_generate = [
        scene
        for scene in project.script.scenes
        if not (skip_existing and project.image_for_scene(scene.scene_number))
    ]
    skipped = len(project.script.scenes) - len(scenes_to_generate)

    if limit and limit > 0:
        scenes_to_generate = scenes_to_generate[:limit]

    if not scenes_to_generate:
        typer.echo("\n✅ No scenes to generate")
        raise typer.Exit(0)

    output.mkdir(parents=True, exist_ok=True)
    typer.echo(f"\n⏳ Generating {len(scenes_to_generate)} images (max {parallel} concurrent)...\n")

    def generate_scene(scene) -> Path:
        result = client.generate_image(scene)
        return save_image(
            result.image_url,
            output / f"scene_{scene.scene_number:02d}.png",
            timeout=config.image_timeout,
        )

    successful = 0
    failed = 0

    with ThreadPoolExecutor(max_workers=parallel) as executor:
        future_to_scene = {
            executor.submit(generate_scene, scene): scene
            for scene in scenes_to_generate
        }

        for future in as_completed(future_to_scene):
            scene = future_to_scene[future]
            try:
                path = future.result()
            except (ScriptboardError, OSError) as e:
                failed += 1
                typer.echo(f"   ❌ Scene {scene.scene_number}: Failed - {e}")
                continue

            project.set_image(scene.scene_number, str(path))
            successful += 1
            typer.echo(f"   ✅ Scene {scene.scene_number}: Generated → {path}")

    if successful:
        project.to_yaml(project_file)
        typer.echo(f"\n📄 Project updated: {project_file}")

    typer.echo("\n📊 Summary:")
    typer.echo(f"   Total scenes: {len(project.script.scenes)}")
    typer.echo(f"   Generated: {successful}")
    typer.echo(f"   Failed: {failed}")
    typer.echo(f"   Skipped: {skipped}")

    if failed > 0:
        typer.echo(f"\n⚠️  {failed} scene(s) failed to generate")
        raise typer.Exit(1)
    typer.echo("\n✅ All images generated successfully!")


@app.command()
def status(
    project_file: Path = typer.Option(
        Path("project.yaml"),
        "--project",
        "-p",
        help="Path to project YAML file"
    )
) -> None:
    """Show project status."""
    from .timeline import calculate_scene_percentages, parse_duration

    project = load_project(project_file)
    scenes = project.script.scenes

    typer.echo(f"📁 Project: {project.title}")
    typer.echo(f"   Topic: {project.topic}")
    typer.echo(f"   Scenes: {len(scenes)}")
    typer.echo(f"   Total duration: {project.total_duration or 'unknown'}")
    typer.echo(f"   Images: {len(project.storyboard_images)}/{len(scenes)}")

    shares = {share.scene_number: share.percentage for share in calculate_scene_percentages(scenes)}

    typer.echo("\n📽️  Scenes:")
    for scene in scenes:
        status_icon = "✅" if project.image_for_scene(scene.scene_number) else "⏳"
        seconds = parse_duration(scene.duration)
        share = shares.get(scene.scene_number, 0)
        typer.echo(f"   {status_icon} Scene {scene.scene_number}: {seconds}s ({share}%)")
        description = scene.visual_description
        if len(description) > 60:
            description = description[:60] + "..."
        typer.echo(f"      → {description}")


@app.command("export-pdf")
def export_pdf(
    project_file: Path = typer.Option(
        Path("project.yaml"),
        "--project",
        "-p",
        help="Path to project YAML file"
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output PDF path (named after the project if not specified)"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Export the project as a PDF report."""
    from .editor.report import export_project_pdf

    setup_logging(verbose)
    project = load_project(project_file)
    typer.echo(f"📄 Exporting: {project.title}")

    try:
        path = export_project_pdf(project, output)
    except (ScriptboardError, OSError) as e:
        typer.echo(f"❌ Error exporting PDF: {e}")
        raise typer.Exit(1)

    typer.echo(f"✅ PDF exported: {path}")


@app.command()
def preview(
    project_file: Path = typer.Option(
        Path("project.yaml"),
        "--project",
        "-p",
        help="Path to project YAML file"
    ),
    output: Path = typer.Option(
        Path("output/preview.mp4"),
        "--output",
        "-o",
        help="Output video path"
    ),
    fps: int = typer.Option(
        24,
        "--fps",
        help="Frames per second",
        min=1,
        max=60
    ),
    width: int = typer.Option(1280, "--width", help="Video width in pixels", min=16),
    height: int = typer.Option(720, "--height", help="Video height in pixels", min=16),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Render a Ken Burns slideshow of the storyboard."""
    from .editor.compositor import plan_preview, render_preview

    setup_logging(verbose)
    project = load_project(project_file)

    segments = plan_preview(project)
    if not segments:
        typer.echo("❌ No scenes with a duration to preview")
        raise typer.Exit(1)

    missing = sum(1 for segment in segments if not segment.image_url)
    typer.echo(f"📼 Rendering preview: {project.title}")
    typer.echo(f"   Scenes: {len(segments)} ({missing} without image)")
    typer.echo(f"   Duration: {sum(segment.duration for segment in segments):.1f}s")

    try:
        render_preview(project, output, size=(width, height), fps=fps)
    except (ScriptboardError, OSError) as e:
        typer.echo(f"❌ Error rendering preview: {e}")
        raise typer.Exit(1)

    typer.echo(f"✅ Preview rendered: {output}")


@app.command()
def play(
    project_file: Path = typer.Option(
        Path("project.yaml"),
        "--project",
        "-p",
        help="Path to project YAML file"
    ),
    speed: float = typer.Option(
        1.0,
        "--speed",
        "-s",
        help="Playback speed multiplier",
        min=0.1,
        max=16.0
    ),
    start: int = typer.Option(
        1,
        "--start",
        help="Scene number to start from",
        min=1
    ),
) -> None:
    """Play the script's timeline, printing each scene as it comes up."""
    from .timeline import AsyncioFrameScheduler, SceneFrame, TimelineEngine, format_duration

    project = load_project(project_file)
    scenes = project.script.scenes

    async def run() -> None:
        done = asyncio.get_running_loop().create_future()

        def on_scene_change(frame: SceneFrame) -> None:
            scene = frame.scene
            typer.echo(f"\n▶️  Scene {scene.scene_number} ({scene.duration or 'no duration'})")
            if scene.voice_over:
                typer.echo(f"   🎙️  {scene.voice_over}")
            typer.echo(f"   🎥 {scene.visual_description}")

        def on_complete() -> None:
            if not done.done():
                done.set_result(None)

        engine = TimelineEngine(
            scenes,
            images=project.image_urls(),
            on_scene_change=on_scene_change,
            on_complete=on_complete,
            scheduler=AsyncioFrameScheduler(fps=30),
        )
        engine.set_playback_speed(speed)
        engine.seek_to_scene(min(start, len(scenes)) - 1)

        total = format_duration(engine.total_duration_ms // 1000, "short")
        typer.echo(f"🎞️  Playing '{project.title}' ({total} at {speed}x)")
        engine.play()
        try:
            if engine.is_playing:
                await done
        finally:
            engine.destroy()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        typer.echo("\n⏹️  Stopped")
        raise typer.Exit(130)

    typer.echo("\n✅ Playback complete")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Run the HTTP API."""
    import uvicorn
    from .api import create_app

    setup_logging(verbose)
    typer.echo(f"🌐 Serving Scriptboard API on http://{host}:{port} ({config.environment})")
    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_level="debug" if verbose else "info",
    )


if __name__ == "__main__":
    app()
