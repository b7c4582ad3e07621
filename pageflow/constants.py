"""Constants and configuration for the pageflow layout engine."""


class LayoutConstants:
    """Central configuration constants for static layout."""

    # Geometry
    DPI = 96  # Device-independent pixels per inch
    POINTS_PER_PIXEL = 72 / 96  # For PDF output
    DEFAULT_PAGE_SIZE = "letter"
    BASE_PAGE_SIZE = "letter"  # Font scaling is relative to this size
    DEFAULT_PADDING = 72  # 0.75" on every side

    # Typography
    BASE_FONT_SIZE = 12
    DEFAULT_LINE_HEIGHT = 1.6  # Multiplier of the font size
    CHAR_WIDTH_RATIO = 0.6  # Average glyph width as a fraction of font size
    CHARS_PER_WORD = 6  # Five letters plus a space
    MIN_FONT_SIZE = 6
    MAX_FONT_SIZE = 72

    # Output
    PAGE_SEPARATOR = "\f"  # Form feed between pages in text export


class FlowConstants:
    """Thresholds for live overflow/underflow rebalancing."""

    UNDERFLOW_RATIO = 0.4  # Pull content when a page is less full than this
    MAX_PULL_CHARS = 100  # Upper bound on characters pulled per underflow
    NEWLINE_LOOKBACK = 20  # Snap window for line breaks
    SPACE_LOOKBACK = 10  # Snap window for word breaks
    MAX_SETTLE_TICKS = 10000  # Guard for ManualScheduler.flush()
