"""Multi-page PDF report of a project: cover, contents, scenes, summary."""

import io
import logging
import re
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import List, Optional, Tuple

from fpdf import FPDF
from fpdf.errors import FPDFException
from PIL import Image

from ..config import config
from ..errors import ImageLoadError
from ..models import Project, Scene
from ..services.images import ImageLoader, load_image_bytes

logger = logging.getLogger(__name__)

FONT = "Helvetica"
MARGIN = 20.0
MAX_IMAGE_HEIGHT = 80.0
LINE_HEIGHT = 5.0
FIRST_SCENE_PAGE = 3

GREY = (100, 100, 100)
BLACK = (0, 0, 0)

_PDF_REPLACEMENTS = {
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2013": "-",
    "\u2014": "-",
    "\u2026": "...",
    "\u00a0": " ",
}


def pdf_text(text: str) -> str:
    """Coerce text to the Latin-1 range supported by the core PDF fonts."""
    for char, replacement in _PDF_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return text.encode("latin-1", errors="replace").decode("latin-1")


def report_filename(project: Project, now: Optional[datetime] = None) -> str:
    """File name like ``video-script-my-title-1700000000000.pdf``."""
    now = now or datetime.now()
    slug = re.sub(r"[^a-z0-9]", "-", project.title, flags=re.IGNORECASE).lower()
    return f"video-script-{slug}-{int(now.timestamp() * 1000)}.pdf"


def fit_image(
    width: float, height: float, max_width: float, max_height: float = MAX_IMAGE_HEIGHT
) -> Tuple[float, float]:
    """Scale an image to the content width, then cap its height. Keeps aspect ratio."""
    ratio = width / height
    fitted_width = max_width
    fitted_height = fitted_width / ratio
    if fitted_height > max_height:
        fitted_height = max_height
        fitted_width = fitted_height * ratio
    return fitted_width, fitted_height


class ReportPDF(FPDF):
    """A4 document that stamps a page number in every footer."""

    def footer(self) -> None:
        self.set_y(-12)
        self.set_font(FONT, size=9)
        self.set_text_color(128, 128, 128)
        self.cell(0, 5, f"Page {self.page_no()}", align="R")


class PageCursor:
    """Vertical write position with page-break handling."""

    def __init__(self, pdf: FPDF, top: float = MARGIN, bottom_margin: float = MARGIN) -> None:
        self.pdf = pdf
        self.top = top
        self.bottom = pdf.h - bottom_margin
        self.y = top

    def new_page(self) -> None:
        self.pdf.add_page()
        self.y = self.top

    def reserve(self, height: float) -> bool:
        """Make room for a block; returns True if a new page was started."""
        if self.y + height > self.bottom:
            self.new_page()
            return True
        return False

    def advance(self, height: float) -> None:
        self.y += height


class ReportBuilder:
    """Lays out a project report page by page."""

    def __init__(
        self,
        project: Project,
        image_loader: Optional[ImageLoader] = None,
        exported_at: Optional[datetime] = None,
        compress: bool = True,
    ) -> None:
        self.project = project
        self.image_loader = image_loader or partial(load_image_bytes, timeout=config.image_timeout)
        self.exported_at = exported_at or datetime.now()

        self.pdf = ReportPDF(orientation="P", unit="mm", format="A4")
        self.pdf.set_margins(MARGIN, MARGIN)
        self.pdf.set_auto_page_break(auto=False)
        self.pdf.set_compression(compress)
        self.cursor = PageCursor(self.pdf)
        self.content_width = self.pdf.w - 2 * MARGIN

    def build(self) -> FPDF:
        scenes = self.project.script.scenes
        logger.info(f"Building report for '{self.project.title}' ({len(scenes)} scenes)")

        self._cover_page()
        self._contents_page()
        for scene in scenes:
            self._scene_page(scene)
        self._summary_page()
        return self.pdf

    def _style(self, size: float, color: Tuple[int, int, int] = BLACK) -> None:
        self.pdf.set_font(FONT, size=size)
        self.pdf.set_text_color(*color)

    def _write(self, text: str, x: Optional[float] = None, align: str = "L") -> None:
        text = pdf_text(text)
        if align == "C":
            x = (self.pdf.w - self.pdf.get_string_width(text)) / 2
        elif align == "R":
            x = (x if x is not None else self.pdf.w - MARGIN) - self.pdf.get_string_width(text)
        elif x is None:
            x = MARGIN
        self.pdf.text(x, self.cursor.y, text)

    def wrap(self, text: str, width: Optional[float] = None) -> List[str]:
        """Split text into lines that fit ``width`` in the current font."""
        lines = self.pdf.multi_cell(
            width or self.content_width,
            LINE_HEIGHT,
            pdf_text(text),
            dry_run=True,
            output="LINES",
        )
        return lines or [""]

    def _text_block(self, heading: str, body: str, trailing_gap: float = 5.0) -> None:
        self.cursor.reserve(20)
        self._style(12)
        self._write(heading)
        self.cursor.advance(7)

        self._style(10)
        for line in self.wrap(body):
            self.cursor.reserve(LINE_HEIGHT)
            self._write(line)
            self.cursor.advance(LINE_HEIGHT)
        self.cursor.advance(trailing_gap)

    def _cover_page(self) -> None:
        project = self.project
        self.cursor.new_page()

        self._style(32)
        self.cursor.y = 80
        for line in self.wrap(project.script.title or "Video Script"):
            self._write(line, align="C")
            self.cursor.advance(12)

        self._style(16, GREY)
        self.cursor.y = max(self.cursor.y + 8, 100)
        for line in self.wrap(project.topic):
            self._write(line, align="C")
            self.cursor.advance(8)

        self._style(12, GREY)
        self.cursor.advance(12)
        self._write(f"Generated: {project.created_at.strftime('%Y-%m-%d')}", align="C")
        if project.total_duration:
            self.cursor.advance(15)
            self._write(f"Duration: {project.total_duration}", align="C")
        self.cursor.advance(15)
        self._write(f"Total Scenes: {len(project.script.scenes)}", align="C")

    def _contents_page(self) -> None:
        self.cursor.new_page()
        self._style(20)
        self._write("Table of Contents")
        self.cursor.advance(15)

        self._style(11)
        for index, scene in enumerate(self.project.script.scenes):
            self.cursor.reserve(10)
            self._write(f"Scene {scene.scene_number}: {scene.duration}", x=MARGIN + 5)
            self._write(str(FIRST_SCENE_PAGE + index), x=self.pdf.w - MARGIN - 10, align="R")
            self.cursor.advance(8)

    def _scene_page(self, scene: Scene) -> None:
        self.cursor.new_page()

        self._style(18)
        self._write(f"Scene {scene.scene_number}")
        self.cursor.advance(10)

        self._style(11, GREY)
        self._write(f"Duration: {scene.duration}")
        self.cursor.advance(10)

        image_url = self.project.image_for_scene(scene.scene_number)
        if image_url:
            self._scene_image(scene, image_url)

        self._text_block("Voice Over:", scene.voice_over)
        self._text_block("Visual Description:", scene.visual_description)
        if scene.notes:
            self._text_block("Notes:", scene.notes, trailing_gap=0)

    def _scene_image(self, scene: Scene, image_url: str) -> None:
        try:
            data = self.image_loader(image_url)
            image = Image.open(io.BytesIO(data))
            image.load()
            width, height = fit_image(image.width, image.height, self.content_width)
            self.cursor.reserve(height)
            self.pdf.image(image, x=MARGIN, y=self.cursor.y, w=width, h=height)
        except (ImageLoadError, Image.DecompressionBombError, OSError, ValueError, FPDFException) as e:
            logger.warning(f"Failed to load image for scene {scene.scene_number}: {e}")
            self.cursor.advance(5)
            return
        self.cursor.advance(height + 10)

    def _summary_page(self) -> None:
        project = self.project
        self.cursor.new_page()

        self._style(20)
        self._write("Summary")
        self.cursor.advance(15)

        self._style(12)
        self._write(f"Total Scenes: {len(project.script.scenes)}")
        self.cursor.advance(10)
        if project.total_duration:
            self._write(f"Total Duration: {project.total_duration}")
            self.cursor.advance(10)
        self._write(f"Exported: {self.exported_at.strftime('%Y-%m-%d %H:%M')}")
        self.cursor.advance(10)

        self._style(10, GREY)
        self._write("Generated by Scriptboard")


def build_report(
    project: Project,
    image_loader: Optional[ImageLoader] = None,
    exported_at: Optional[datetime] = None,
    compress: bool = True,
) -> FPDF:
    """Lay out the full report and return the unsaved document."""
    return ReportBuilder(project, image_loader, exported_at, compress).build()


def render_report(project: Project, image_loader: Optional[ImageLoader] = None) -> bytes:
    """Return the report as PDF bytes."""
    return bytes(build_report(project, image_loader).output())


def export_project_pdf(
    project: Project,
    output_path: Optional[Path] = None,
    image_loader: Optional[ImageLoader] = None,
) -> Path:
    """Write the report to ``output_path`` (a generated name by default)."""
    output_path = output_path or Path(report_filename(project))
    output_path.parent.mkdir(parents=True, exist_ok=True)
    pdf = build_report(project, image_loader)
    pdf.output(str(output_path))
    logger.info(f"Exported PDF: {output_path}")
    return output_path
