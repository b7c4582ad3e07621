"""Rendered-height measurement for live page surfaces.

The flow controller never renders text itself. It is given a height
function, `height_of(content, style) -> float`, which must be monotonic in
the content length for a fixed style. Measurements are taken through a
short-lived MeasurementSurface that is opened right before a check and
closed right after it, whatever happens in between.
"""

import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional

from .constants import LayoutConstants
from .page_config import PageConfig
from .wrap import count_lines


@dataclass(frozen=True)
class SurfaceStyle:
    """Typography of a page surface; all lengths in page pixels."""
    width: float
    font_size: float = LayoutConstants.BASE_FONT_SIZE
    line_height: float = LayoutConstants.DEFAULT_LINE_HEIGHT
    font_family: str = "serif"

    @classmethod
    def for_page(cls, page_config: PageConfig, font_size: float,
                 line_height: float = LayoutConstants.DEFAULT_LINE_HEIGHT,
                 font_family: str = "serif") -> 'SurfaceStyle':
        return cls(width=page_config.content_width, font_size=font_size,
                   line_height=line_height, font_family=font_family)


HeightFunction = Callable[[str, SurfaceStyle], float]


class MeasurementError(Exception):
    """Raised when a surface is used outside of its measuring scope."""


class MeasurementSurface:
    """Off-document surface measuring content under one style.

    Heights of the same content are memoized while the surface is open;
    the memo is dropped when it closes.
    """

    def __init__(self, height_of: HeightFunction, style: SurfaceStyle):
        self._height_of = height_of
        self._style = style
        self._memo: Optional[Dict[str, float]] = None

    @property
    def is_open(self) -> bool:
        return self._memo is not None

    def open(self) -> None:
        if self.is_open:
            raise MeasurementError("Measurement surface is already open")
        self._memo = {}

    def close(self) -> None:
        self._memo = None

    def height(self, content: str) -> float:
        if self._memo is None:
            raise MeasurementError("Measurement surface used after release")
        if content not in self._memo:
            self._memo[content] = self._height_of(content, self._style)
        return self._memo[content]

    def fits(self, content: str, viewport_height: float) -> bool:
        return self.height(content) <= viewport_height


@contextmanager
def measurement_surface(height_of: HeightFunction, style: SurfaceStyle) -> Iterator[MeasurementSurface]:
    """Acquire a measurement surface for the duration of a with-block."""
    surface = MeasurementSurface(height_of, style)
    surface.open()
    try:
        yield surface
    finally:
        surface.close()


class WrappedTextMeasurer:
    """Height function for plain monospaced-ish text.

    Wraps each paragraph at the estimated characters per line (same glyph
    width approximation as the static layout) and multiplies the number of
    lines by the line height.
    """

    def __call__(self, content: str, style: SurfaceStyle) -> float:
        line_height_px = style.font_size * style.line_height
        char_width = style.font_size * LayoutConstants.CHAR_WIDTH_RATIO
        if char_width <= 0 or line_height_px <= 0:
            return 0.0
        columns = max(1, math.floor(style.width / char_width))
        return count_lines(content, columns) * line_height_px
