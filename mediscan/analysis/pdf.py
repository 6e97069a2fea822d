# ============================================
# Report PDF Rendering
# ============================================
"""
Render a report as a single fixed-layout A4 page.

The page is drawn onto a Pillow image at 150 DPI and saved as PDF.
Layout (top to bottom):
    - Title
    - Patient information (name, id, date, doctor)
    - Scan information (type, risk level with colour marker, status)
    - Findings (wrapped)
    - Recommendations (wrapped)
    - Footer with generation time
    - Light grey page border
"""

import io
import re
import textwrap
from datetime import datetime
from typing import Tuple

from PIL import Image, ImageDraw, ImageFont

from mediscan.models import Report


DPI = 150
# A4 at 150 DPI
PAGE_SIZE: Tuple[int, int] = (1240, 1754)
MARGIN = 118
WRAP_WIDTH = 95
UNSAFE_FILENAME_CHARS = re.compile(r"[^\w .-]")

TITLE_COLOR = (0, 150, 200)
TEXT_COLOR = (0, 0, 0)
FOOTER_COLOR = (128, 128, 128)
BORDER_COLOR = (200, 200, 200)
RISK_COLORS = {
    "high": (255, 0, 0),
    "medium": (255, 165, 0),
    "low": (0, 128, 0),
}


def _font(size: int) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


def _format_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return value


def _safe_name_part(value: str) -> str:
    # Path separators and other unsafe characters become underscores
    return UNSAFE_FILENAME_CHARS.sub("_", value).strip(" .") or "unknown"


def report_filename(report: Report) -> str:
    """Download name like report_John Doe_brain_2024-02-20.pdf."""
    parts = [report.patient_name, report.scan_type, _format_date(report.date)]
    return "report_" + "_".join(_safe_name_part(p) for p in parts) + ".pdf"


def render_report_pdf(report: Report) -> bytes:
    """
    Render a report to PDF bytes.

    Args:
        report: Report to render

    Returns:
        PDF document as bytes
    """
    width, height = PAGE_SIZE
    page = Image.new("RGB", PAGE_SIZE, "white")
    draw = ImageDraw.Draw(page)

    heading = _font(30)
    body = _font(24)
    small = _font(20)

    # Header
    title = "MediScan AI - Medical Report"
    title_font = _font(40)
    draw.text(
        ((width - draw.textlength(title, font=title_font)) / 2, 140),
        title,
        fill=TITLE_COLOR,
        font=title_font,
    )

    y = 260
    draw.text((MARGIN, y), "Patient Information", fill=TEXT_COLOR, font=heading)
    y += 50
    for line in (
        f"Patient Name: {report.patient_name}",
        f"Patient ID: {report.patient_id}",
        f"Report Date: {_format_date(report.date)}",
        f"Doctor: {report.doctor}",
    ):
        draw.text((MARGIN, y), line, fill=TEXT_COLOR, font=body)
        y += 36

    y += 30
    draw.text((MARGIN, y), "Scan Information", fill=TEXT_COLOR, font=heading)
    y += 50
    draw.text((MARGIN, y), f"Scan Type: {report.scan_type} Scan", fill=TEXT_COLOR, font=body)
    y += 36
    risk = report.risk_level.upper()
    draw.text((MARGIN, y), f"Risk Level: {risk}", fill=TEXT_COLOR, font=body)
    marker_color = RISK_COLORS.get(report.risk_level, TEXT_COLOR)
    draw.ellipse((MARGIN + 480, y + 4, MARGIN + 500, y + 24), fill=marker_color)
    draw.text((MARGIN + 512, y), f"{risk} RISK", fill=marker_color, font=body)
    y += 36
    draw.text((MARGIN, y), f"Status: {report.status}", fill=TEXT_COLOR, font=body)
    y += 66

    for section, text in (("Findings", report.findings), ("Recommendations", report.recommendations)):
        draw.text((MARGIN, y), section, fill=TEXT_COLOR, font=heading)
        y += 50
        for line in textwrap.wrap(text, WRAP_WIDTH) or [""]:
            draw.text((MARGIN, y), line, fill=TEXT_COLOR, font=small)
            y += 30
        y += 40

    # Footer
    footer_y = height - 180
    for line in (
        "This report was generated by MediScan AI - www.mediscan.ai",
        f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
    ):
        draw.text(
            ((width - draw.textlength(line, font=small)) / 2, footer_y),
            line,
            fill=FOOTER_COLOR,
            font=small,
        )
        footer_y += 34

    draw.rectangle((60, 60, width - 60, height - 60), outline=BORDER_COLOR, width=2)

    buffer = io.BytesIO()
    page.save(buffer, format="PDF", resolution=float(DPI))
    return buffer.getvalue()
