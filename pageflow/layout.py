"""Static layout - splits content into pages using estimated capacity.

Markup tags (`<...>`) are treated as opaque atomic tokens: they are never
split across a line or page boundary and do not count toward the visible
line length.
"""

import math
import re
from dataclasses import dataclass, field
from typing import List, Tuple

from .metrics import ContentMetrics

MARKUP_TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_SPLIT_RE = re.compile(r"(\s+)")

# Private-use code points, so placeholders cannot collide with document text
_TAG_OPEN = "\ue000"
_TAG_CLOSE = "\ue001"
_PLACEHOLDER_RE = re.compile(_TAG_OPEN + r"(\d+)" + _TAG_CLOSE)


@dataclass(frozen=True)
class ContentPage:
    """One page of laid-out content.

    `start_offset`/`end_offset` delimit the slice of the canonical content
    this page was built from. Line breaks inserted by the splitter are part
    of `content` but not of the source slice.
    """
    page_number: int
    content: str = ""
    word_count: int = 0
    character_count: int = 0
    is_full: bool = False
    start_offset: int = 0
    end_offset: int = 0


@dataclass(frozen=True)
class LayoutResult:
    pages: Tuple[ContentPage, ...]
    total_pages: int
    overflow: bool
    metrics: ContentMetrics


@dataclass(frozen=True)
class PreviewResult:
    estimated_pages: int
    word_count: int
    metrics: ContentMetrics


@dataclass
class _PageBuilder:
    page_number: int
    start_offset: int
    parts: List[str] = field(default_factory=list)
    word_count: int = 0
    character_count: int = 0
    has_text: bool = False

    def append(self, text: str) -> None:
        self.parts.append(text)
        self.character_count += len(text)

    def build(self, end_offset: int, is_full: bool) -> ContentPage:
        return ContentPage(
            page_number=self.page_number,
            content="".join(self.parts),
            word_count=self.word_count,
            character_count=self.character_count,
            is_full=is_full,
            start_offset=self.start_offset,
            end_offset=end_offset,
        )


def strip_markup(text: str) -> str:
    """Remove markup tags, leaving the visible text."""
    return MARKUP_TAG_RE.sub("", text)


def split_into_tokens(text: str) -> List[str]:
    """Split text into word and whitespace tokens, keeping tags whole.

    Tags may contain whitespace (`<a href="x">`), so they are swapped for
    placeholders before splitting and restored afterwards. Empty tokens are
    dropped; joining the result gives back `text`.
    """
    tags: List[str] = []

    def _stash(match):
        tags.append(match.group(0))
        return f"{_TAG_OPEN}{len(tags) - 1}{_TAG_CLOSE}"

    protected = MARKUP_TAG_RE.sub(_stash, text)
    tokens = [t for t in WHITESPACE_SPLIT_RE.split(protected) if t]
    if not tags:
        return tokens
    return [_PLACEHOLDER_RE.sub(lambda m: tags[int(m.group(1))], t) for t in tokens]


def count_words(text: str) -> int:
    """Number of whitespace-delimited non-empty tokens."""
    return len(text.split())


def layout_text(content: str, metrics: ContentMetrics) -> LayoutResult:
    """Split content into pages.

    Args:
        content: Canonical document text, possibly with markup tags
        metrics: Page capacity to fill

    Returns:
        LayoutResult with at least one page. `overflow` is always False.
    """
    if metrics.has_capacity:
        chars_per_line, lines_per_page = metrics.characters_per_line, metrics.lines_per_page
    else:
        # Page holds nothing: every token gets a page of its own
        chars_per_line, lines_per_page = 0, 0

    pages: List[ContentPage] = []
    page = _PageBuilder(page_number=1, start_offset=0)
    line_length = 0
    page_lines = 0
    offset = 0

    for token in split_into_tokens(content):
        is_whitespace = token.isspace()
        visible_length = len(strip_markup(token))

        if (not is_whitespace and line_length > 0
                and line_length + visible_length > chars_per_line):
            line_length = 0
            page_lines += 1
            if page_lines >= lines_per_page:
                pages.append(page.build(end_offset=offset, is_full=True))
                page = _PageBuilder(page_number=len(pages) + 1, start_offset=offset)
                page_lines = 0
            else:
                page.append("\n")

        page.append(token)
        offset += len(token)
        if not is_whitespace:
            page.word_count += 1
            page.has_text = True
            line_length += visible_length

    if page.has_text or not pages:
        pages.append(page.build(end_offset=offset, is_full=False))

    return LayoutResult(
        pages=tuple(pages),
        total_pages=len(pages),
        overflow=False,
        metrics=metrics,
    )


def preview_layout(content: str, metrics: ContentMetrics) -> PreviewResult:
    """Estimate the page count from the word count alone."""
    word_count = count_words(content)
    words_per_page = metrics.words_per_line * metrics.lines_per_page
    if words_per_page > 0:
        estimated = math.ceil(word_count / words_per_page)
    else:
        # No capacity: every word ends up on its own page
        estimated = word_count
    return PreviewResult(
        estimated_pages=max(1, estimated),
        word_count=word_count,
        metrics=metrics,
    )
