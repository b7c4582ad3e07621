"""Export laid-out pages as plain text or PDF.

PDF pages have the geometry of the active page configuration, converted
from 96-per-inch pixels to PDF points. Markup tags are stripped; text is
set in one of the built-in PDF fonts.
"""

import io
from typing import Iterable, List, Sequence

from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from .constants import LayoutConstants
from .layout import ContentPage, strip_markup
from .metrics import measure_page_capacity
from .page_config import PageConfig
from .wrap import wrap_paragraph


class ExportError(Exception):
    """Raised when pages cannot be exported."""


def format_for_print(pages: Iterable[ContentPage]) -> str:
    """All pages as one string, separated by form feeds."""
    return LayoutConstants.PAGE_SEPARATOR.join(strip_markup(page.content) for page in pages)


class PDFExporter:
    """Generate PDF files from laid-out pages."""

    def __init__(self, page_config: PageConfig, font_size: float,
                 line_height: float = LayoutConstants.DEFAULT_LINE_HEIGHT,
                 font_name: str = "Helvetica"):
        """Initialize the exporter.

        Args:
            page_config: Page geometry in pixels
            font_size: Font size in pixels
            line_height: Line height multiplier
            font_name: A standard PDF font (e.g. "Helvetica", "Times-Roman")

        Raises:
            ExportError: If the font is not one of the standard PDF fonts.
        """
        if font_name not in pdfmetrics.standardFonts:
            raise ExportError(f"Unknown font: {font_name}")
        self.page_config = page_config
        self.font_name = font_name
        self.font_size_px = font_size
        self.line_height = line_height

        scale = LayoutConstants.POINTS_PER_PIXEL
        self.page_width = page_config.width * scale
        self.page_height = page_config.height * scale
        self.left_margin = page_config.padding.left * scale
        self.top_margin = page_config.padding.top * scale
        self.font_size = font_size * scale
        self.leading = font_size * line_height * scale

        metrics = measure_page_capacity(page_config, font_size, line_height)
        self.characters_per_line = metrics.characters_per_line

    def page_lines(self, page: ContentPage) -> List[str]:
        """Visible lines of a page, wrapped at the estimated line width."""
        lines: List[str] = []
        for paragraph in strip_markup(page.content).split("\n"):
            if self.characters_per_line > 0:
                lines.extend(wrap_paragraph(paragraph, self.characters_per_line))
            else:
                lines.append(paragraph)
        return lines

    def generate_pdf(self, pages: Sequence[ContentPage]) -> bytes:
        """Render pages into a PDF document.

        Raises:
            ExportError: If there are no pages.
        """
        if not pages:
            raise ExportError("Nothing to export: no pages")

        pdf_buffer = io.BytesIO()
        c = canvas.Canvas(pdf_buffer, pagesize=(self.page_width, self.page_height))

        for page in pages:
            c.setFont(self.font_name, self.font_size)
            # First baseline one font size below the top margin
            y_position = self.page_height - self.top_margin - self.font_size
            for line in self.page_lines(page):
                c.drawString(self.left_margin, y_position, self._make_pdf_safe(line))
                y_position -= self.leading
            c.showPage()

        c.save()
        return pdf_buffer.getvalue()

    def write_pdf(self, pages: Sequence[ContentPage], path: str) -> None:
        data = self.generate_pdf(pages)
        with open(path, 'wb') as f:
            f.write(data)

    @staticmethod
    def _make_pdf_safe(text: str) -> str:
        """Replace characters the standard fonts cannot encode with '?'."""
        return text.encode('cp1252', errors='replace').decode('cp1252')
