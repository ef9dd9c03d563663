"""Stylesheet compilation."""

import logging
from pathlib import Path

import sass

from sitepress.exceptions import CompileError

logger = logging.getLogger(__name__)

PREPROCESSOR_EXTENSIONS = (".scss", ".sass")


def compile_stylesheet(entry: Path, output: Path) -> Path:
    """Compile the entry stylesheet into a single CSS file."""
    entry = Path(entry)
    output = Path(output)

    if not entry.is_file():
        raise CompileError("Stylesheet entry not found", path=str(entry))

    try:
        css = sass.compile(filename=str(entry), output_style="expanded")
    except sass.CompileError as e:
        raise CompileError(f"SCSS compilation error: {e}", path=str(entry)) from e

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(css, encoding="utf-8")
    except OSError as e:
        raise CompileError(f"Could not write compiled CSS: {e}", path=str(output)) from e

    logger.info("SCSS compiled to %s", output)
    return output
