"""Command pattern implementation for document operations."""

import dataclasses
import math
import re
from abc import ABC, abstractmethod
from numbers import Real
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .constants import LayoutConstants
from .engine import LayoutEngine
from .layout import ContentPage, LayoutResult
from .page_config import Padding, get_page_config
from .state import CommandResult, DocumentState, FindMatch


class CommandRejected(Exception):
    """Raised by a command when its arguments fail validation.

    The document state is left untouched.
    """


class DocumentCommand(ABC):
    """Base class for document commands."""

    @abstractmethod
    def execute(self, state: DocumentState, args: Sequence[Any]) -> CommandResult:
        """Execute the command.

        Args:
            state: Current document state (never modified)
            args: Positional command arguments

        Returns:
            CommandResult; `new_state` is set when the document changed
        """


class QueryCommand(DocumentCommand):
    """Base class for read-only commands."""

    def execute(self, state, args):
        try:
            return self._query(state, *args)
        except CommandRejected as e:
            return CommandResult.failure(str(e))

    @abstractmethod
    def _query(self, state: DocumentState, *args) -> CommandResult:
        """Build the report."""


class EditOutcome(NamedTuple):
    new_state: Optional[DocumentState]  # None when nothing changed
    message: str
    data: Optional[Dict[str, Any]] = None


class EditCommand(DocumentCommand):
    """Base class for commands that produce a new document state."""

    def execute(self, state, args):
        try:
            outcome = EditOutcome(*self._edit(state, *args))
        except CommandRejected as e:
            return CommandResult.failure(str(e))
        return CommandResult(success=True, message=outcome.message,
                             new_state=outcome.new_state, data=outcome.data or {})

    @abstractmethod
    def _edit(self, state: DocumentState, *args) -> Tuple:
        """Perform the edit and return (new state, message[, data])."""


def with_layout(state: DocumentState, content: str, engine: LayoutEngine,
                result: LayoutResult) -> DocumentState:
    """New state for `content` laid out as `result`; the current page is clamped."""
    return state.replace(
        content=content,
        pages=result.pages,
        settings=engine.settings,
        metrics=result.metrics,
        current_page=min(max(state.current_page, 1), result.total_pages),
    )


def relayout(state: DocumentState, content: str) -> DocumentState:
    """Lay content out with the state's engine into a new state."""
    return with_layout(state, content, state.engine, state.engine.layout(content))


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def _page_index(value, low: int, high: int) -> Optional[int]:
    """`value` as an int in [low, high], or None.

    Whole-number floats such as 2.0 are accepted.
    """
    if not _is_number(value) or value != int(value):
        return None
    value = int(value)
    return value if low <= value <= high else None


def _valid_font_size(size) -> bool:
    return _is_number(size) and LayoutConstants.MIN_FONT_SIZE <= size <= LayoutConstants.MAX_FONT_SIZE


def _invalid_page(state: DocumentState) -> CommandRejected:
    return CommandRejected(f"Invalid page number. Document has {state.total_pages} pages.")


def _invalid_font_size() -> CommandRejected:
    return CommandRejected(
        f"Font size must be between {LayoutConstants.MIN_FONT_SIZE} "
        f"and {LayoutConstants.MAX_FONT_SIZE} points.")


def _require_search(search) -> str:
    if not search or not isinstance(search, str):
        raise CommandRejected("No search text provided.")
    return search


def _compile_search(search: str, use_pattern: bool) -> 're.Pattern[str]':
    if not use_pattern:
        return re.compile(re.escape(search))
    try:
        return re.compile(search)
    except re.error as e:
        raise CommandRejected(f"Invalid search pattern {search!r}: {e}")


class AddTextCommand(EditCommand):
    def _edit(self, state, text=None, page_number=None):
        if not text or not isinstance(text, str):
            raise CommandRejected("No text provided.")
        content = state.content
        page_number = _page_index(page_number, 1, state.total_pages)
        if page_number is not None:
            # Insert at the end of the page's slice of the canonical content
            offset = state.pages[page_number - 1].end_offset
            content = content[:offset] + text + content[offset:]
        else:
            content = content + text
        new_state = relayout(state, content)
        return new_state, f"Text added. Document now has {new_state.total_pages} pages."


class InsertPageCommand(EditCommand):
    def _edit(self, state, after_page=None):
        if after_page is None:
            after_page = state.total_pages
        after_page = _page_index(after_page, 0, state.total_pages)
        if after_page is None:
            raise _invalid_page(state)
        # The blank page owns an empty slice right after its predecessor
        offset = state.pages[after_page - 1].end_offset if after_page > 0 else 0
        blank = ContentPage(page_number=after_page + 1, start_offset=offset, end_offset=offset)
        pages: List[ContentPage] = list(state.pages)
        pages.insert(after_page, blank)
        pages = [dataclasses.replace(page, page_number=i + 1) for i, page in enumerate(pages)]
        new_state = state.replace(pages=tuple(pages))
        return new_state, (f"Page inserted after page {after_page}. "
                           f"Document now has {new_state.total_pages} pages.")


class DeletePageCommand(EditCommand):
    def _edit(self, state, page_number=None):
        page_number = _page_index(page_number, 1, state.total_pages)
        if page_number is None:
            raise _invalid_page(state)
        if state.total_pages == 1:
            raise CommandRejected("Cannot delete the only page in the document.")
        page = state.pages[page_number - 1]
        content = state.content[:page.start_offset] + state.content[page.end_offset:]
        new_state = relayout(state, content)
        return new_state, (f"Page {page_number} deleted. "
                           f"Document now has {new_state.total_pages} pages.")


class SetFontSizeCommand(EditCommand):
    def _edit(self, state, font_size=None):
        if not _valid_font_size(font_size):
            raise _invalid_font_size()
        engine = state.engine
        result = engine.reflow(state.content, font_size=font_size)
        new_state = with_layout(state, state.content, engine, result)
        return new_state, (f"Font size changed to {font_size}pt. "
                           f"Document reflowed to {new_state.total_pages} pages.")


class SetPageSizeCommand(EditCommand):
    def _edit(self, state, page_size=None):
        if get_page_config(page_size) is None:
            raise CommandRejected(f"Invalid page size: {page_size}")
        engine = state.engine
        result = engine.reflow(state.content, page_size=page_size)
        new_state = with_layout(state, state.content, engine, result)
        return new_state, (f"Page size changed to {page_size}. "
                           f"Document reflowed to {new_state.total_pages} pages.")


class SetPageStyleCommand(EditCommand):
    def _edit(self, state, page_size=None, font_size=None, line_height=None, padding=None):
        if page_size is not None and get_page_config(page_size) is None:
            raise CommandRejected(f"Invalid page size: {page_size}")
        if font_size is not None and not _valid_font_size(font_size):
            raise _invalid_font_size()
        if line_height is not None and not (_is_number(line_height) and line_height > 0):
            raise CommandRejected("Line height must be a positive number.")
        if padding is not None:
            self._check_padding(padding)

        engine = state.engine
        engine.set_page_style(page_size=page_size, font_size=font_size,
                              line_height=line_height, padding=padding)
        new_state = with_layout(state, state.content, engine, engine.layout(state.content))
        return new_state, f"Page style updated. Document now has {new_state.total_pages} pages."

    @staticmethod
    def _check_padding(padding) -> None:
        if not isinstance(padding, Mapping):
            raise CommandRejected("Padding must be a mapping of side to size.")
        sides = {f.name for f in dataclasses.fields(Padding)}
        for side, value in padding.items():
            if side not in sides:
                raise CommandRejected(f"Unknown padding side: {side}")
            if not (_is_number(value) and value >= 0):
                raise CommandRejected(f"Padding {side} must be a non-negative number.")


class LayoutTextCommand(EditCommand):
    def _edit(self, state, content=None):
        if content is None:
            content = ""
        if not isinstance(content, str):
            raise CommandRejected("Content must be a string.")
        new_state = relayout(state, content)
        return new_state, f"Content laid out across {new_state.total_pages} pages."


class ReflowContentCommand(EditCommand):
    def _edit(self, state, page_size=None, font_size=None):
        # Unrecognized values are dropped, not rejected
        if get_page_config(page_size) is None:
            page_size = None
        if not _valid_font_size(font_size):
            font_size = None
        changes = []
        if page_size:
            changes.append(f"page size: {page_size}")
        if font_size:
            changes.append(f"font size: {font_size}pt")
        if not changes:
            return None, "Nothing to reflow: no recognized page size or font size."

        engine = state.engine
        result = engine.reflow(state.content, page_size=page_size, font_size=font_size)
        new_state = with_layout(state, state.content, engine, result)
        return new_state, (f"Content reflowed with {', '.join(changes)}. "
                           f"Document now has {new_state.total_pages} pages.")


class GoToPageCommand(EditCommand):
    def _edit(self, state, page_number=None):
        page_number = _page_index(page_number, 1, state.total_pages)
        if page_number is None:
            raise _invalid_page(state)
        return state.replace(current_page=page_number), f"Navigated to page {page_number}."


class ClearContentCommand(EditCommand):
    def _edit(self, state):
        new_state = relayout(state.replace(current_page=1), "")
        return new_state, "Document content cleared."


class ReplaceTextCommand(EditCommand):
    def _edit(self, state, search=None, replacement="", use_pattern=False):
        search = _require_search(search)
        if replacement is None:
            replacement = ""
        pattern = _compile_search(search, use_pattern)
        if use_pattern:
            content, count = pattern.subn(replacement, state.content)
        else:
            # Literal replacement: no backslash or group expansion
            content, count = pattern.subn(lambda _match: replacement, state.content)
        new_state = relayout(state, content)
        message = f"Replaced {count} occurrence(s). Document now has {new_state.total_pages} pages."
        return new_state, message, {"replacements": count}


class PreviewLayoutCommand(QueryCommand):
    def _query(self, state, content=None):
        if content is None:
            content = state.content
        preview = state.engine.preview(content)
        return CommandResult(
            success=True,
            message=f"Preview: Content would span approximately {preview.estimated_pages} pages.",
            preview_mode=True,
            data={
                "estimated_pages": preview.estimated_pages,
                "word_count": preview.word_count,
                "metrics": preview.metrics,
            },
        )


class GetPageCountCommand(QueryCommand):
    def _query(self, state):
        return CommandResult(
            success=True,
            message=f"Document has {state.total_pages} pages.",
            data={"total_pages": state.total_pages},
        )


class GetMetricsCommand(QueryCommand):
    def _query(self, state):
        metrics = state.engine.measure_page_capacity()
        return CommandResult(
            success=True,
            message=f"Metrics: {metrics.describe()}.",
            data={"metrics": metrics, "font_size": state.engine.scaled_font_size()},
        )


class FindTextCommand(QueryCommand):
    def _query(self, state, search=None, use_pattern=False):
        search = _require_search(search)
        matches: List[FindMatch] = []
        if use_pattern:
            pattern = _compile_search(search, use_pattern=True)
            for page in state.pages:
                matches.extend(FindMatch(page.page_number, m.start())
                               for m in pattern.finditer(page.content) if m.end() > m.start())
        else:
            for page in state.pages:
                position = page.content.find(search)
                while position != -1:
                    matches.append(FindMatch(page.page_number, position))
                    position = page.content.find(search, position + 1)

        if not matches:
            return CommandResult(success=True, message=f'Text "{search}" not found in document.',
                                 preview_mode=True, data={"matches": []})
        locations = ", ".join(f"Page {m.page}" for m in matches)
        return CommandResult(
            success=True,
            message=f'Found "{search}" in {len(matches)} locations: {locations}.',
            preview_mode=True,
            data={"matches": matches},
        )


class CommandRegistry:
    """Registry for mapping command names to commands."""

    def __init__(self):
        self._commands: Dict[str, DocumentCommand] = {}
        self._setup_default_commands()

    def _setup_default_commands(self):
        """Set up the default command names."""
        # Content
        self.register("ADD_TEXT", AddTextCommand())
        self.register("LAYOUT_TEXT", LayoutTextCommand())
        self.register("CLEAR_CONTENT", ClearContentCommand())
        self.register("REPLACE_TEXT", ReplaceTextCommand())

        # Pages
        self.register("INSERT_PAGE", InsertPageCommand())
        self.register("DELETE_PAGE", DeletePageCommand())
        self.register("GO_TO_PAGE", GoToPageCommand())

        # Configuration
        self.register("SET_FONT_SIZE", SetFontSizeCommand())
        self.register("SET_PAGE_SIZE", SetPageSizeCommand())
        self.register("SET_PAGE_STYLE", SetPageStyleCommand())
        self.register("REFLOW_CONTENT", ReflowContentCommand())

        # Read-only
        self.register("PREVIEW_LAYOUT", PreviewLayoutCommand())
        self.register("GET_PAGE_COUNT", GetPageCountCommand())
        self.register("GET_METRICS", GetMetricsCommand())
        self.register("FIND_TEXT", FindTextCommand())

    def register(self, name: str, command: DocumentCommand):
        """Register a command under a name (case-insensitive)."""
        self._commands[name.upper()] = command

    def get_command(self, name: str) -> Optional[DocumentCommand]:
        return self._commands.get(name.upper())

    def names(self) -> List[str]:
        return sorted(self._commands)

    def execute(self, state: DocumentState, name: str, args: Sequence[Any]) -> CommandResult:
        """Execute the named command against `state`."""
        command = self.get_command(name)
        if command is None:
            return CommandResult.failure(f"Unknown command: {name}")
        return command.execute(state, args)
