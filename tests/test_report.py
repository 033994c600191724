"""Tests for the PDF report."""

import io
from datetime import datetime

import pytest
from PIL import Image

from scriptboard.editor.report import (
    PageCursor,
    ReportBuilder,
    ReportPDF,
    build_report,
    export_project_pdf,
    fit_image,
    pdf_text,
    report_filename,
)
from scriptboard.errors import ImageLoadError

from conftest import make_project


def png_bytes(width: int = 64, height: int = 36) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (200, 120, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


def unreachable(url: str) -> bytes:
    raise ImageLoadError(f"Failed to fetch {url}: timed out")


def report_bytes(project, image_loader=unreachable) -> bytes:
    return bytes(build_report(project, image_loader=image_loader, compress=False).output())


def test_page_sequence(project):
    pdf = build_report(project, image_loader=unreachable, compress=False)

    # cover, contents, one per scene, summary
    assert pdf.page_no() == 1 + 1 + len(project.script.scenes) + 1


def test_report_contains_scene_text(project):
    content = report_bytes(project)

    assert b"Table of Contents" in content
    assert b"Scene 2" in content
    assert b"Narration for scene 3" in content
    assert b"Wide shot for scene 1" in content
    assert b"Summary" in content


def test_unreachable_image_is_skipped(project):
    project.set_image(1, "https://images.invalid/scene-1.png")

    content = report_bytes(project)

    assert b"Narration for scene 1" in content
    assert b"/Subtype /Image" not in content


def test_image_embedded_when_available(project):
    project.set_image(2, "scene-2.png")

    content = report_bytes(project, image_loader=lambda url: png_bytes())

    assert b"/Subtype /Image" in content


def test_undecodable_image_is_skipped(project):
    project.set_image(1, "scene-1.png")

    content = report_bytes(project, image_loader=lambda url: b"not an image")

    assert b"Narration for scene 1" in content


def test_notes_and_long_text_are_laid_out():
    project = make_project(durations=("10s",))
    scene = project.script.scenes[0]
    scene.notes = "Shoot at golden hour"
    scene.voice_over = "word " * 2000

    pdf = build_report(project, image_loader=unreachable, compress=False)
    content = bytes(pdf.output())

    assert b"Shoot at golden hour" in content
    # the voice over alone overflows one page
    assert pdf.page_no() > 4


def test_fit_image_width_first_then_height_cap():
    width, height = fit_image(1600, 600, 170)
    assert width == pytest.approx(170)
    assert height == pytest.approx(63.75)

    width, height = fit_image(1600, 900, 170)
    assert height == pytest.approx(80)
    assert width == pytest.approx(80 * 16 / 9)

    width, height = fit_image(900, 1600, 170)
    assert height == pytest.approx(80)
    assert width == pytest.approx(45)


def test_page_cursor_reserve():
    pdf = ReportPDF(format="A4")
    cursor = PageCursor(pdf)
    cursor.new_page()

    assert cursor.reserve(50) is False
    cursor.advance(240)
    assert cursor.reserve(50) is True
    assert cursor.y == cursor.top
    assert pdf.page_no() == 2


def test_pdf_text_coerces_to_latin1():
    assert pdf_text("“Quoted” — café…") == '"Quoted" - café...'
    assert pdf_text("漢") == "?"


def test_report_filename():
    project = make_project()
    project.title = "My Title: Part 2"
    now = datetime.fromtimestamp(1_700_000_000)

    assert report_filename(project, now) == "video-script-my-title--part-2-1700000000000.pdf"


def test_export_writes_file(tmp_path, project):
    path = export_project_pdf(project, tmp_path / "out" / "report.pdf", image_loader=unreachable)

    assert path.exists()
    assert path.read_bytes().startswith(b"%PDF")


def test_oversized_image_is_skipped(project, monkeypatch):
    # Pillow refuses images above twice this pixel count.
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    project.set_image(1, "huge.png")

    pdf = build_report(project, image_loader=lambda url: png_bytes(), compress=False)
    content = bytes(pdf.output())

    assert pdf.page_no() == 1 + 1 + len(project.script.scenes) + 1
    assert b"Narration for scene 1" in content
    assert b"/Subtype /Image" not in content


def test_wrap_keeps_lines_within_content_width(project):
    builder = ReportBuilder(project, image_loader=unreachable)
    builder.cursor.new_page()
    builder.pdf.set_font("Helvetica", size=10)

    lines = builder.wrap("first paragraph " * 40 + "\nsecond")

    assert len(lines) > 2
    assert lines[-1] == "second"
    assert all(builder.pdf.get_string_width(line) <= builder.content_width for line in lines)
