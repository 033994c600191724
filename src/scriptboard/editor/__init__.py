"""Project output: PDF reports and storyboard previews."""

from .compositor import (
    PreviewSegment,
    ken_burns_transform,
    ken_burns_frame,
    plan_preview,
    render_preview,
)
from .report import (
    PageCursor,
    ReportBuilder,
    build_report,
    export_project_pdf,
    fit_image,
    pdf_text,
    render_report,
    report_filename,
)

__all__ = [
    # Compositor
    "PreviewSegment",
    "ken_burns_transform",
    "ken_burns_frame",
    "plan_preview",
    "render_preview",
    # Report
    "PageCursor",
    "ReportBuilder",
    "build_report",
    "export_project_pdf",
    "fit_image",
    "pdf_text",
    "render_report",
    "report_filename",
]
