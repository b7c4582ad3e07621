"""Pageflow CLI entry point.

Allows running via `python -m pageflow` and provides the console script
defined in `pyproject.toml`.

    pageflow [--page-size K] [--font-size N] [--pdf OUT] [--preview]
             [--edit] [--verbose] [--version] FILE
"""

from __future__ import annotations

import logging
import sys
from importlib import metadata
from pathlib import Path

from .constants import LayoutConstants
from .page_config import PAGE_CONFIGS

USAGE = ("usage: pageflow [--page-size K] [--font-size N] [--pdf OUT] [--preview]\n"
         "                [--edit] [--verbose] [--version] FILE")


class UsageError(Exception):
    """Raised for malformed command lines."""


def get_version_string() -> str:
    try:
        return f"pageflow {metadata.version('pageflow')}"
    except metadata.PackageNotFoundError:
        return "pageflow (development)"


def parse_args(argv: list[str]) -> dict:
    """Very small option parser; returns a dict of options."""
    options = {
        'page_size': LayoutConstants.DEFAULT_PAGE_SIZE,
        'font_size': None,
        'pdf': None,
        'preview': False,
        'edit': False,
        'verbose': False,
        'version': False,
        'file': None,
    }
    args = list(argv)
    while args:
        arg = args.pop(0)
        if arg in ('--version', '-V'):
            options['version'] = True
        elif arg in ('--verbose', '-v'):
            options['verbose'] = True
        elif arg == '--preview':
            options['preview'] = True
        elif arg == '--edit':
            options['edit'] = True
        elif arg in ('--page-size', '--font-size', '--pdf'):
            if not args:
                raise UsageError(f"{arg} needs a value")
            value = args.pop(0)
            if arg == '--page-size':
                if value.lower() not in PAGE_CONFIGS:
                    known = ", ".join(PAGE_CONFIGS)
                    raise UsageError(f"Unknown page size: {value} (choose from {known})")
                options['page_size'] = value.lower()
            elif arg == '--font-size':
                try:
                    options['font_size'] = float(value)
                except ValueError:
                    raise UsageError(f"Invalid font size: {value}") from None
            else:
                options['pdf'] = value
        elif arg.startswith('-'):
            raise UsageError(f"Unknown option: {arg}")
        elif options['file'] is None:
            options['file'] = arg
        else:
            raise UsageError(f"Unexpected argument: {arg}")
    return options


def _print_layout(document, preview: bool) -> None:
    state = document.get_state()
    engine = state.engine
    scaling = engine.font_scaling
    print(f"{engine.page_config.name}: {scaling.current_font_size:g}px font "
          f"(scaling {scaling.scaling_ratio:.2f})")
    print(f"Capacity: {state.metrics.describe()}")

    if preview:
        result = document.execute_command("PREVIEW_LAYOUT")
        print(f"Preview: {result.message}")
        return

    for page in state.pages:
        marker = "full" if page.is_full else "partial"
        print(f"  Page {page.page_number}: {page.word_count} words, "
              f"{page.character_count} characters ({marker})")
    print(f"Total: {state.total_pages} pages")


def main(argv: list[str] | None = None) -> int:
    try:
        options = parse_args(sys.argv[1:] if argv is None else argv)
    except UsageError as e:
        print(f"pageflow: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 2

    if options['version']:
        print(get_version_string())
        return 0

    logging.basicConfig(
        level=logging.DEBUG if options['verbose'] else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    font_size = options['font_size']

    if options['edit']:
        # Lazy import to avoid importing UI deps for batch runs
        from .textual_app import PageflowApp
        try:
            app = PageflowApp(options['file'], options['page_size'], font_size)
        except ValueError as e:
            print(f"pageflow: {e}", file=sys.stderr)
            return 2
        app.run()
        return 0

    if options['file'] is None:
        print(USAGE, file=sys.stderr)
        return 2

    try:
        content = Path(options['file']).read_text(encoding='utf-8')
    except OSError as e:
        print(f"pageflow: cannot read {options['file']}: {e}", file=sys.stderr)
        return 1

    from .document import DocumentCommandInterface
    document = DocumentCommandInterface(content, options['page_size'])
    if font_size is not None:
        result = document.execute_command("SET_FONT_SIZE", [font_size])
        if not result.success:
            print(f"pageflow: {result.message}", file=sys.stderr)
            return 2

    _print_layout(document, options['preview'])

    if options['pdf']:
        from .export import ExportError, PDFExporter
        state = document.get_state()
        engine = state.engine
        try:
            exporter = PDFExporter(engine.page_config, engine.font_scaling.current_font_size,
                                   engine.line_height)
            exporter.write_pdf(state.pages, options['pdf'])
        except (ExportError, OSError) as e:
            print(f"pageflow: PDF export failed: {e}", file=sys.stderr)
            return 1
        print(f"Wrote {options['pdf']}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
