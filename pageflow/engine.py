"""Layout engine - owns the active page configuration of one document.

The engine is a thin stateful wrapper: configuration lives in an immutable
LayoutSettings value, and layout itself is done by the pure functions in
layout.py. Each open document gets its own engine.
"""

import logging
from typing import Mapping, Optional

from .constants import LayoutConstants
from .layout import LayoutResult, PreviewResult, layout_text, preview_layout
from .metrics import ContentMetrics, FontScaling, LayoutSettings, measure_settings
from .page_config import PAGE_CONFIGS, PageConfig, get_page_config

logger = logging.getLogger(__name__)


class LayoutEngine:
    """Computes page splits for a document under a changeable configuration."""

    def __init__(self, page_size: str = LayoutConstants.DEFAULT_PAGE_SIZE,
                 base_font_size: float = LayoutConstants.BASE_FONT_SIZE,
                 current_font_size: Optional[float] = None,
                 line_height: float = LayoutConstants.DEFAULT_LINE_HEIGHT):
        """Initialize the engine.

        Args:
            page_size: Key into PAGE_CONFIGS; unknown keys fall back to letter
            base_font_size: Font size on a letter page; scaled for other sizes
            current_font_size: Explicit font size, bypassing auto-scaling
            line_height: Line height multiplier
        """
        page_config = get_page_config(page_size)
        if page_config is None:
            logger.warning(f"Unknown page size {page_size!r}, using {LayoutConstants.DEFAULT_PAGE_SIZE}")
            page_config = PAGE_CONFIGS[LayoutConstants.DEFAULT_PAGE_SIZE]
        self._settings = LayoutSettings(
            page_config=page_config,
            base_font_size=base_font_size,
            font_size_override=current_font_size,
            line_height=line_height,
        )

    @classmethod
    def from_settings(cls, settings: LayoutSettings) -> 'LayoutEngine':
        engine = cls.__new__(cls)
        engine._settings = settings
        return engine

    def copy(self) -> 'LayoutEngine':
        """Return an independent engine with the same configuration."""
        return LayoutEngine.from_settings(self._settings)

    @property
    def settings(self) -> LayoutSettings:
        return self._settings

    @property
    def page_config(self) -> PageConfig:
        return self._settings.page_config

    @property
    def font_scaling(self) -> FontScaling:
        return self._settings.font_scaling

    @property
    def line_height(self) -> float:
        return self._settings.line_height

    def scaled_font_size(self) -> int:
        """Current font size rounded to whole points."""
        return round(self._settings.current_font_size)

    def measure_page_capacity(self) -> ContentMetrics:
        return measure_settings(self._settings)

    def layout(self, content: str) -> LayoutResult:
        return layout_text(content, self.measure_page_capacity())

    def preview(self, content: str) -> PreviewResult:
        return preview_layout(content, self.measure_page_capacity())

    def reflow(self, content: str, page_size: Optional[str] = None,
               font_size: Optional[float] = None) -> LayoutResult:
        """Apply a new page size and/or font size, then lay the content out again.

        An unrecognized page size is ignored. An explicit font size stays in
        effect across later page size changes.
        """
        page_config = get_page_config(page_size)
        if page_config is not None:
            self._settings = self._settings.replace(page_config=page_config)
        elif page_size:
            logger.debug(f"Ignoring unknown page size {page_size!r} during reflow")
        if font_size:
            self._settings = self._settings.replace(font_size_override=font_size)
        return self.layout(content)

    def set_page_style(self, page_size: Optional[str] = None,
                       font_size: Optional[float] = None,
                       line_height: Optional[float] = None,
                       padding: Optional[Mapping[str, float]] = None) -> None:
        """Change any part of the page style.

        Padding is merged side by side into the current page configuration,
        after the page size (if any) has been replaced.
        """
        settings = self._settings
        page_config = get_page_config(page_size)
        if page_config is not None:
            settings = settings.replace(page_config=page_config)
        if font_size:
            settings = settings.replace(font_size_override=font_size)
        if line_height:
            settings = settings.replace(line_height=line_height)
        if padding:
            settings = settings.replace(page_config=settings.page_config.with_padding(**padding))
        self._settings = settings
