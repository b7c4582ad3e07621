"""Capacity estimate for a page.

The estimate uses a fixed average glyph width rather than real font
metrics: characters per line and lines per page are approximations that
are good enough to split a document into pages.
"""

import dataclasses
import math
from dataclasses import dataclass
from typing import Optional

from .constants import LayoutConstants
from .page_config import PAGE_CONFIGS, PageConfig, scaling_ratio


@dataclass(frozen=True)
class ContentMetrics:
    """How much text fits on a page."""
    characters_per_line: int
    lines_per_page: int
    words_per_line: int
    total_capacity: int

    @property
    def has_capacity(self) -> bool:
        return self.total_capacity > 0

    def describe(self) -> str:
        return (f"{self.characters_per_line} chars/line, "
                f"{self.lines_per_page} lines/page, "
                f"{self.words_per_line} words/line, "
                f"{self.total_capacity} total capacity")


@dataclass(frozen=True)
class FontScaling:
    """Font size of a page, derived from the base (letter) page size."""
    base_font_size: float
    base_page_width: float
    base_page_height: float
    current_font_size: float
    scaling_ratio: float


@dataclass(frozen=True)
class LayoutSettings:
    """Everything the splitter needs to know besides the content.

    `font_size_override` is None while the font follows the page size; an
    explicit font size replaces the auto-scaled one.
    """
    page_config: PageConfig
    base_font_size: float = LayoutConstants.BASE_FONT_SIZE
    font_size_override: Optional[float] = None
    line_height: float = LayoutConstants.DEFAULT_LINE_HEIGHT

    @property
    def scaling_ratio(self) -> float:
        return scaling_ratio(self.page_config)

    @property
    def current_font_size(self) -> float:
        if self.font_size_override is not None:
            return self.font_size_override
        return self.base_font_size * self.scaling_ratio

    @property
    def font_scaling(self) -> FontScaling:
        base = PAGE_CONFIGS[LayoutConstants.BASE_PAGE_SIZE]
        return FontScaling(
            base_font_size=self.base_font_size,
            base_page_width=base.width,
            base_page_height=base.height,
            current_font_size=self.current_font_size,
            scaling_ratio=self.scaling_ratio,
        )

    def replace(self, **changes) -> 'LayoutSettings':
        return dataclasses.replace(self, **changes)


def measure_page_capacity(page_config: PageConfig, font_size: float,
                          line_height: float = LayoutConstants.DEFAULT_LINE_HEIGHT) -> ContentMetrics:
    """Estimate page capacity for a page size and font.

    Args:
        page_config: Page geometry
        font_size: Font size in pixels
        line_height: Line height as a multiple of the font size

    Returns:
        ContentMetrics; all zero when the geometry leaves no room for text.
    """
    content_width = max(page_config.content_width, 0)
    content_height = max(page_config.content_height, 0)

    char_width = font_size * LayoutConstants.CHAR_WIDTH_RATIO
    line_height_px = font_size * line_height

    characters_per_line = math.floor(content_width / char_width) if char_width > 0 else 0
    lines_per_page = math.floor(content_height / line_height_px) if line_height_px > 0 else 0
    words_per_line = characters_per_line // LayoutConstants.CHARS_PER_WORD

    return ContentMetrics(
        characters_per_line=characters_per_line,
        lines_per_page=lines_per_page,
        words_per_line=words_per_line,
        total_capacity=characters_per_line * lines_per_page,
    )


def measure_settings(settings: LayoutSettings) -> ContentMetrics:
    """Capacity for the active layout settings."""
    return measure_page_capacity(settings.page_config, settings.current_font_size,
                                 settings.line_height)
