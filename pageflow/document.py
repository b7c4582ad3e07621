"""Document command interface.

A DocumentCommandInterface holds the state of one open document and runs
named commands against it. Every command either replaces the state as a
whole or leaves it untouched; no exception escapes execute_command().
"""

import logging
from typing import Any, Optional, Sequence

from .commands import CommandRegistry
from .constants import LayoutConstants
from .engine import LayoutEngine
from .state import CommandResult, DocumentState
from .store import StoredDocument

logger = logging.getLogger(__name__)


class DocumentCommandInterface:
    """Stateful facade over a document's content and layout engine."""

    def __init__(self, initial_content: str = "",
                 page_size: str = LayoutConstants.DEFAULT_PAGE_SIZE,
                 font_size: float = LayoutConstants.BASE_FONT_SIZE,
                 registry: Optional[CommandRegistry] = None):
        """Open a document.

        Args:
            initial_content: Canonical text of the document
            page_size: Key into PAGE_CONFIGS
            font_size: Base font size, scaled with the page size
            registry: Commands to dispatch to (default: all built-in commands)
        """
        engine = LayoutEngine(page_size, font_size)
        layout = engine.layout(initial_content)
        self._state = DocumentState(
            content=initial_content,
            pages=layout.pages,
            current_page=1,
            settings=engine.settings,
            metrics=layout.metrics,
        )
        self.registry = registry or CommandRegistry()

    @classmethod
    def from_stored(cls, document: StoredDocument) -> 'DocumentCommandInterface':
        """Open a document loaded from a DocumentStore.

        A stored font size that differs from the exact auto-scaled size of
        the stored page size is applied as an explicit override.
        """
        interface = cls(document.content, document.page_size)
        scaled = interface.get_state().engine.font_scaling.current_font_size
        if document.font_size and document.font_size != scaled:
            result = interface.execute_command("SET_FONT_SIZE", [document.font_size])
            if not result.success:
                logger.warning(f"Ignoring stored font size {document.font_size}: {result.message}")
        return interface

    def to_stored(self) -> StoredDocument:
        """The three fields a DocumentStore persists."""
        engine = self._state.engine
        return StoredDocument(
            content=self._state.content,
            page_size=engine.page_config.key,
            font_size=engine.font_scaling.current_font_size,
        )

    def get_state(self) -> DocumentState:
        """Current document state (an immutable snapshot)."""
        return self._state

    def execute_command(self, command: str, args: Sequence[Any] = ()) -> CommandResult:
        """Execute a named command.

        Args:
            command: Command name, e.g. "ADD_TEXT" (case-insensitive)
            args: Positional arguments of the command

        Returns:
            CommandResult. Failures, including unexpected exceptions, are
            reported with success=False and leave the state unchanged.
        """
        try:
            result = self.registry.execute(self._state, command, list(args or ()))
        except Exception as e:
            logger.exception(f"Command {command} failed")
            return CommandResult.failure(f"Error executing command {command}: {e}")

        if result.new_state is not None:
            self._state = result.new_state
        return result
