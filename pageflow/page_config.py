"""Page geometry for the pageflow layout engine.

This module defines the fixed table of named page sizes, in
device-independent pixels at 96 units per inch, and the helpers used to
look them up and derive font sizes from them.
"""

import dataclasses
from dataclasses import dataclass
from typing import Dict, Optional

from .constants import LayoutConstants


class UnknownPageSizeError(KeyError):
    """Raised when a page size key is not in the page size table."""


@dataclass(frozen=True)
class Padding:
    """Page margins in pixels."""
    top: float = LayoutConstants.DEFAULT_PADDING
    right: float = LayoutConstants.DEFAULT_PADDING
    bottom: float = LayoutConstants.DEFAULT_PADDING
    left: float = LayoutConstants.DEFAULT_PADDING

    def merged(self, **overrides: Optional[float]) -> 'Padding':
        """Return a copy with the given sides replaced.

        Sides passed as None keep their current value.
        """
        changes = {side: value for side, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class PageConfig:
    """Configuration for a physical page size.

    Attributes:
        key: Lookup key in PAGE_CONFIGS (e.g. "letter")
        width: Page width in pixels
        height: Page height in pixels
        padding: Margins in pixels
        name: Display name of the page size
    """
    key: str
    width: float
    height: float
    padding: Padding
    name: str

    @property
    def content_width(self) -> float:
        """Width available for text."""
        return self.width - self.padding.left - self.padding.right

    @property
    def content_height(self) -> float:
        """Height available for text."""
        return self.height - self.padding.top - self.padding.bottom

    def with_padding(self, **sides: Optional[float]) -> 'PageConfig':
        """Return a copy of this config with some padding sides replaced."""
        return dataclasses.replace(self, padding=self.padding.merged(**sides))

    @classmethod
    def create(cls, key: str, width: float, height: float, name: str) -> 'PageConfig':
        """Create a page configuration with the standard 72px margins."""
        return cls(key=key, width=width, height=height, padding=Padding(), name=name)


# Pre-defined page sizes (pixels at 96 DPI)
PAGE_CONFIGS: Dict[str, PageConfig] = {
    "letter": PageConfig.create("letter", 816, 1056, 'Letter (8.5" x 11")'),
    "legal": PageConfig.create("legal", 816, 1344, 'Legal (8.5" x 14")'),
    "a4": PageConfig.create("a4", 794, 1123, 'A4 (8.27" x 11.69")'),
    "a3": PageConfig.create("a3", 1123, 1587, 'A3 (11.69" x 16.54")'),
    "tabloid": PageConfig.create("tabloid", 1056, 1632, 'Tabloid (11" x 17")'),
    "executive": PageConfig.create("executive", 696, 1008, 'Executive (7.25" x 10.5")'),
    "ledger": PageConfig.create("ledger", 1632, 1056, 'Ledger (17" x 11")'),
}


def get_page_config(page_size: Optional[str]) -> Optional[PageConfig]:
    """Get page configuration by key.

    Args:
        page_size: Key of the page size (case-sensitive)

    Returns:
        PageConfig if found, None otherwise
    """
    if not page_size:
        return None
    return PAGE_CONFIGS.get(page_size)


def require_page_config(page_size: str) -> PageConfig:
    """Like get_page_config(), but raise UnknownPageSizeError on a miss."""
    config = get_page_config(page_size)
    if config is None:
        raise UnknownPageSizeError(page_size)
    return config


def scaling_ratio(config: PageConfig, base: Optional[PageConfig] = None) -> float:
    """Ratio used to scale fonts from the base page size to `config`.

    The smaller of the width and height ratios, so that scaled content
    still fits in both directions.
    """
    if base is None:
        base = PAGE_CONFIGS[LayoutConstants.BASE_PAGE_SIZE]
    return min(config.width / base.width, config.height / base.height)


def calculate_optimal_font_size(target_page_size: str,
                                base_page_size: str = LayoutConstants.BASE_PAGE_SIZE,
                                base_font_size: float = LayoutConstants.BASE_FONT_SIZE) -> int:
    """Scale a font size from one page size to another.

    Unknown keys leave the font size unchanged.
    """
    target = get_page_config(target_page_size)
    base = get_page_config(base_page_size)
    if target is None or base is None:
        return round(base_font_size)
    return round(base_font_size * scaling_ratio(target, base))
