"""Live page flow for interactive editing.

Each page of an editing session is an independent surface. After every
edit the page is checked against its viewport:

- overflowing content (rendered height > viewport height) is cut at the
  largest prefix that still fits, snapped back to a line or word break,
  and pushed to the start of the next page;
- an under-filled page pulls a short prefix back from the next page, and
  a next page left empty by the pull is removed.

Checks are scheduled rather than run inline, and a new check for a page
supersedes the pending one. The cursor follows any text it was in.
"""

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from .constants import FlowConstants, LayoutConstants
from .measure import (HeightFunction, MeasurementSurface, SurfaceStyle, WrappedTextMeasurer,
                      measurement_surface)
from .page_config import PageConfig
from .scheduler import CheckScheduler, ManualScheduler

logger = logging.getLogger(__name__)


class FlowTransition(Enum):
    """Outcome of checking one page."""
    STABLE = "stable"
    OVERFLOWED = "overflowed"
    UNDERFLOWED = "underflowed"


class NavigationKey(Enum):
    UP = "up"
    DOWN = "down"
    TAB = "tab"


@dataclass
class FlowPage:
    id: str
    content: str = ""


@dataclass(frozen=True)
class CursorFocus:
    page_index: int
    offset: int


def find_nearest_break_point(text: str, target: int) -> int:
    """Snap a cut point back to a line or word boundary.

    Looks for a newline in the NEWLINE_LOOKBACK characters before `target`,
    then for a space in the SPACE_LOOKBACK characters before it, and cuts
    right after the first one found. Never moves forward, so the kept prefix
    is never longer than `target`.
    """
    target = max(0, min(target, len(text)))
    for i in range(target - 1, max(0, target - FlowConstants.NEWLINE_LOOKBACK) - 1, -1):
        if text[i] == "\n":
            return i + 1
    for i in range(target - 1, max(0, target - FlowConstants.SPACE_LOOKBACK) - 1, -1):
        if text[i] == " ":
            return i + 1
    return target


def largest_fitting_prefix(fits: Callable[[int], bool], upper: int) -> int:
    """Binary search for the largest n in [0, upper] with fits(n).

    `fits` must be monotonic (true up to some n, false after); fits(0) is
    assumed true.
    """
    low, high = 0, upper
    while low < high:
        mid = (low + high + 1) // 2
        if fits(mid):
            low = mid
        else:
            high = mid - 1
    return low


class FlowController:
    """Keeps a list of live page surfaces balanced against a viewport."""

    def __init__(self, height_of: HeightFunction, viewport_height: float, style: SurfaceStyle,
                 content: str = "", scheduler: Optional[CheckScheduler] = None):
        """Start an editing session.

        Args:
            height_of: Rendered height of content under a style
            viewport_height: Height available on each page
            style: Typography of every page surface
            content: Initial text, placed on the first page and flowed on
                the first scheduler tick
            scheduler: Where checks are deferred to (default: ManualScheduler)
        """
        self.height_of = height_of
        self.viewport_height = viewport_height
        self.style = style
        self.scheduler = scheduler or ManualScheduler()
        self.focus: Optional[CursorFocus] = None
        self._ids = itertools.count(1)
        self._listeners: List[Callable[[], None]] = []
        self.pages: List[FlowPage] = []
        self.load_content(content)

    @classmethod
    def for_page(cls, page_config: PageConfig, font_size: float,
                 line_height: float = LayoutConstants.DEFAULT_LINE_HEIGHT,
                 content: str = "", height_of: Optional[HeightFunction] = None,
                 scheduler: Optional[CheckScheduler] = None) -> 'FlowController':
        """Session whose surfaces have the text area of `page_config`."""
        style = SurfaceStyle.for_page(page_config, font_size, line_height)
        return cls(height_of or WrappedTextMeasurer(), page_config.content_height, style,
                   content=content, scheduler=scheduler)

    # -- Pages -------------------------------------------------------------

    def _new_page(self, content: str = "") -> FlowPage:
        return FlowPage(id=str(next(self._ids)), content=content)

    @property
    def content(self) -> str:
        """The whole document: all page contents joined without separators."""
        return "".join(page.content for page in self.pages)

    def page_contents(self) -> List[str]:
        return [page.content for page in self.pages]

    def index_of(self, page_id: str) -> Optional[int]:
        for i, page in enumerate(self.pages):
            if page.id == page_id:
                return i
        return None

    def load_content(self, content: str) -> None:
        """Replace the session with a single page holding `content`.

        Used when the host reconciles the session with a freshly laid out
        document; the content is flowed on the next tick.
        """
        for page in self.pages:
            self.scheduler.cancel(page.id)
        self.pages = [self._new_page(content)]
        self.focus = None
        if content:
            self.schedule_check(0)

    def add_listener(self, listener: Callable[[], None]) -> None:
        """Call `listener` whenever a check moves content between pages."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()

    # -- Editing -----------------------------------------------------------

    def update_page(self, index: int, content: str, cursor: Optional[int] = None) -> None:
        """Record new text for a page surface and schedule its check."""
        self.pages[index].content = content
        if cursor is not None:
            self.focus = CursorFocus(index, cursor)
        self.schedule_check(index)

    def set_cursor(self, index: int, offset: int) -> None:
        self.focus = CursorFocus(index, offset)

    def schedule_check(self, index: int) -> None:
        page_id = self.pages[index].id
        self.scheduler.schedule(page_id, lambda: self._run_scheduled(page_id))

    def _run_scheduled(self, page_id: str) -> None:
        index = self.index_of(page_id)
        if index is None:
            # Page was merged away before its check came up
            return
        self.check_page(index)

    def _measuring(self):
        return measurement_surface(self.height_of, self.style)

    def check_page(self, index: int) -> FlowTransition:
        """Resolve overflow or underflow of one page.

        Returns:
            The transition that happened; STABLE if the page was left alone.
        """
        with self._measuring() as surface:
            if surface.height(self.pages[index].content) > self.viewport_height:
                self._push_overflow(index, surface)
                transition = FlowTransition.OVERFLOWED
            elif self._pull_underflow(index, surface):
                transition = FlowTransition.UNDERFLOWED
            else:
                transition = FlowTransition.STABLE

        if transition is not FlowTransition.STABLE:
            logger.debug(f"Page {index + 1} {transition.value}; {len(self.pages)} pages")
            self._notify()
        return transition

    # -- Overflow ----------------------------------------------------------

    def find_overflow_break_point(self, surface: MeasurementSurface, text: str) -> int:
        """Length of the longest prefix of `text` that fits the viewport."""
        return largest_fitting_prefix(
            lambda n: surface.fits(text[:n], self.viewport_height), len(text))

    def _push_overflow(self, index: int, surface: MeasurementSurface) -> None:
        page = self.pages[index]
        text = page.content
        cut = find_nearest_break_point(text, self.find_overflow_break_point(surface, text))
        if cut <= 0:
            # Not even one character fits; move at least one so flow terminates
            logger.warning(f"Page {index + 1}: viewport too small for any content")
            cut = min(1, len(text))

        overflow = text[cut:]
        if not overflow:
            return
        page.content = text[:cut]
        if index + 1 < len(self.pages):
            self.pages[index + 1].content = overflow + self.pages[index + 1].content
        else:
            self.pages.append(self._new_page(overflow))

        focus = self.focus
        if focus is not None:
            if focus.page_index == index and focus.offset > cut:
                self.focus = CursorFocus(index + 1, focus.offset - cut)
            elif focus.page_index == index + 1:
                self.focus = CursorFocus(index + 1, focus.offset + len(overflow))

        self.schedule_check(index + 1)

    # -- Underflow ---------------------------------------------------------

    def occupancy(self, surface: MeasurementSurface, index: int) -> float:
        """Rendered height of a page relative to the viewport."""
        if self.viewport_height <= 0:
            return 1.0
        return surface.height(self.pages[index].content) / self.viewport_height

    def _pull_underflow(self, index: int, surface: MeasurementSurface) -> bool:
        if index + 1 >= len(self.pages):
            return False
        page, donor = self.pages[index], self.pages[index + 1]
        if not donor.content:
            return False
        if self.occupancy(surface, index) >= FlowConstants.UNDERFLOW_RATIO:
            return False

        amount = min(len(donor.content), FlowConstants.MAX_PULL_CHARS)
        if not surface.fits(page.content + donor.content[:amount], self.viewport_height):
            # Pull only what fits, so the page does not overflow right back
            amount = largest_fitting_prefix(
                lambda n: surface.fits(page.content + donor.content[:n], self.viewport_height),
                amount)
        if amount == 0:
            return False

        base_length = len(page.content)
        page.content += donor.content[:amount]
        donor.content = donor.content[amount:]
        donor_removed = not donor.content
        if donor_removed:
            self.scheduler.cancel(donor.id)
            del self.pages[index + 1]

        focus = self.focus
        if focus is not None:
            if focus.page_index == index + 1:
                if focus.offset < amount or donor_removed:
                    self.focus = CursorFocus(index, base_length + focus.offset)
                else:
                    self.focus = CursorFocus(index + 1, focus.offset - amount)
            elif focus.page_index > index + 1 and donor_removed:
                self.focus = CursorFocus(focus.page_index - 1, focus.offset)

        # Keep pulling until the page is full enough or the donors run out
        self.schedule_check(index)
        if not donor_removed:
            self.schedule_check(index + 1)
        return True

    # -- Navigation --------------------------------------------------------

    def handle_key(self, index: int, key: Union[str, NavigationKey], offset: int) -> bool:
        """Move focus across page boundaries.

        Args:
            index: Page the key was pressed on
            key: "up", "down" or "tab"
            offset: Cursor offset within that page

        Returns:
            True if the key was consumed (the host should not handle it).
        """
        try:
            key = NavigationKey(key)
        except ValueError:
            return False

        last_index = len(self.pages) - 1
        if key is NavigationKey.UP:
            if offset == 0 and index > 0:
                self.focus = CursorFocus(index - 1, len(self.pages[index - 1].content))
                return True
            return False
        if key is NavigationKey.DOWN:
            if offset == len(self.pages[index].content) and index < last_index:
                self.focus = CursorFocus(index + 1, 0)
                return True
            return False
        # Tab always stays inside the document
        if index < last_index:
            self.focus = CursorFocus(index + 1, 0)
        return True
