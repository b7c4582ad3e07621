"""Paginated editor: one Textual TextArea per live page."""

from pathlib import Path
from typing import Dict, Optional, Tuple

from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.message import Message
from textual.widgets import Footer, Header, TextArea

from .constants import LayoutConstants
from .document import DocumentCommandInterface
from .flow import FlowController
from .scheduler import AsyncioScheduler


def offset_to_location(text: str, offset: int) -> Tuple[int, int]:
    """Convert a character offset into a (row, column) location."""
    before = text[:max(0, offset)]
    row = before.count("\n")
    column = len(before) - (before.rfind("\n") + 1)
    return row, column


def location_to_offset(text: str, location: Tuple[int, int]) -> int:
    """Convert a (row, column) location into a character offset."""
    row, column = location
    lines = text.split("\n")
    row = min(row, len(lines) - 1)
    return sum(len(line) + 1 for line in lines[:row]) + min(column, len(lines[row]))


class PageEditor(TextArea):
    """Editable surface for one live page."""

    class FocusMoved(Message):
        """The flow controller moved focus to another page."""

    def __init__(self, controller: FlowController, page_id: str, text: str = "", **kwargs):
        super().__init__(text, **kwargs)
        self.controller = controller
        self.page_id = page_id

    @property
    def page_index(self) -> Optional[int]:
        return self.controller.index_of(self.page_id)

    @property
    def cursor_offset(self) -> int:
        return location_to_offset(self.text, self.cursor_location)

    async def _on_key(self, event: events.Key) -> None:
        index = self.page_index
        if index is None:
            return
        if self.controller.handle_key(index, event.key, self.cursor_offset):
            # Consumed: keep TextArea and its bindings from moving the cursor too
            event.prevent_default()
            event.stop()
            self.post_message(self.FocusMoved())


class PageflowApp(App):
    """Textual app editing a document as a stack of live pages."""

    CSS = """
    #pages {
        align-horizontal: center;
        background: $background;
    }
    PageEditor {
        margin: 1 0;
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+s", "save", "Save"),
    ]

    def __init__(self, filename: Optional[str] = None,
                 page_size: str = LayoutConstants.DEFAULT_PAGE_SIZE,
                 font_size: Optional[float] = None):
        """Open `filename` for editing.

        Args:
            filename: File to edit; a missing file starts empty
            page_size: Key into PAGE_CONFIGS
            font_size: Explicit font size; by default the font follows the page size

        Raises:
            ValueError: If the font size is out of range.
        """
        super().__init__()
        self.filename = filename
        self.document = DocumentCommandInterface(self._read_file(), page_size)
        if font_size is not None:
            result = self.document.execute_command("SET_FONT_SIZE", [font_size])
            if not result.success:
                raise ValueError(result.message)
        engine = self.document.get_state().engine
        self.controller = FlowController.for_page(
            engine.page_config,
            engine.font_scaling.current_font_size,
            engine.line_height,
            scheduler=AsyncioScheduler(),
        )
        self.controller.add_listener(self._on_flow_changed)
        self._editors: Dict[str, PageEditor] = {}

    def _read_file(self) -> str:
        if self.filename and Path(self.filename).exists():
            return Path(self.filename).read_text(encoding='utf-8')
        return ""

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(id="pages")
        yield Footer()

    async def on_mount(self) -> None:
        if self.filename:
            self.sub_title = f"Editing: {self.filename}"
        # Flow starts on the first tick of the running loop
        self.controller.load_content(self.document.get_state().content)
        self._sync_editors()

    def _editor_size(self) -> Tuple[int, int]:
        metrics = self.document.get_state().engine.measure_page_capacity()
        # Border and gutter around the text
        return metrics.characters_per_line + 4, metrics.lines_per_page + 2

    def _sync_editors(self) -> None:
        """Mount, update and remove editors to match the controller's pages."""
        container = self.query_one("#pages", VerticalScroll)
        live_ids = {page.id for page in self.controller.pages}
        for page_id in list(self._editors):
            if page_id not in live_ids:
                self._editors.pop(page_id).remove()

        width, height = self._editor_size()
        total = len(self.controller.pages)
        for i, page in enumerate(self.controller.pages):
            editor = self._editors.get(page.id)
            if editor is None:
                editor = PageEditor(self.controller, page.id, page.content, id=f"page-{page.id}")
                editor.styles.width = width
                editor.styles.height = height
                self._editors[page.id] = editor
                container.mount(editor)
            elif editor.text != page.content:
                editor.load_text(page.content)
            editor.border_title = f"Page {i + 1} of {total}"

    def _apply_focus(self) -> None:
        focus = self.controller.focus
        if focus is None or focus.page_index >= len(self.controller.pages):
            return
        editor = self._editors.get(self.controller.pages[focus.page_index].id)
        if editor is None:
            return
        editor.focus()
        editor.cursor_location = offset_to_location(editor.text, focus.offset)

    def _on_flow_changed(self) -> None:
        self._sync_editors()
        self._apply_focus()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        editor = event.text_area
        if not isinstance(editor, PageEditor):
            return
        index = editor.page_index
        # Changes we pushed into the editor ourselves carry no new text
        if index is None or editor.text == self.controller.pages[index].content:
            return
        self.controller.update_page(index, editor.text, editor.cursor_offset)

    def on_page_editor_focus_moved(self, message: PageEditor.FocusMoved) -> None:
        self._apply_focus()

    def action_save(self) -> None:
        """Save the file and lay the edited content out again."""
        content = self.controller.content
        result = self.document.execute_command("LAYOUT_TEXT", [content])
        if not self.filename:
            self.notify("No filename set", severity="warning")
            return
        try:
            Path(self.filename).write_text(content, encoding='utf-8')
        except OSError as e:
            self.notify(f"Error saving: {e}", severity="error")
            return
        self.notify(f"Saved to {self.filename}. {result.message}")
