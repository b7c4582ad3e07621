"""Pageflow - paginated document layout and live page flow."""

from .commands import CommandRegistry
from .document import DocumentCommandInterface
from .engine import LayoutEngine
from .flow import FlowController
from .layout import ContentPage, LayoutResult, layout_text
from .metrics import ContentMetrics
from .page_config import PAGE_CONFIGS, PageConfig, get_page_config
from .state import CommandResult, DocumentState

__all__ = [
    'CommandRegistry',
    'CommandResult',
    'ContentMetrics',
    'ContentPage',
    'DocumentCommandInterface',
    'DocumentState',
    'FlowController',
    'LayoutEngine',
    'LayoutResult',
    'PAGE_CONFIGS',
    'PageConfig',
    'get_page_config',
    'layout_text',
]
