import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .engine import LayoutEngine
from .layout import ContentPage
from .metrics import ContentMetrics, LayoutSettings


@dataclass(frozen=True)
class DocumentState:
    """Snapshot of an open document.

    Never modified in place; commands build a new state and swap it in.
    The layout configuration is held as immutable settings, and `engine`
    builds a fresh LayoutEngine from them on every access.
    """
    content: str
    pages: Tuple[ContentPage, ...]
    current_page: int
    settings: LayoutSettings
    metrics: ContentMetrics

    @property
    def engine(self) -> LayoutEngine:
        return LayoutEngine.from_settings(self.settings)

    @property
    def total_pages(self) -> int:
        return len(self.pages)

    def replace(self, **changes) -> 'DocumentState':
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class FindMatch:
    page: int  # 1-based page number
    position: int  # Offset within the page's content


@dataclass(frozen=True)
class CommandResult:
    success: bool
    message: str
    new_state: Optional[DocumentState] = None
    preview_mode: bool = False
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, message: str) -> 'CommandResult':
        return cls(success=False, message=message)
