"""Stylesheet compilation: SASS/SCSS -> one minified ``main.min.css``."""

import logging
from pathlib import Path
from typing import Sequence

import rcssmin
import sass

from ..exceptions import TransformError
from .base import collect_sources, write_text

logger = logging.getLogger(__name__)

OUTPUT_NAME = 'main.min.css'


def compile_stylesheet(path: Path) -> str:
    """Compile one .sass/.scss file with libsass, or read a plain .css."""
    if path.suffix == '.css':
        return path.read_text(encoding='utf-8')
    try:
        return sass.compile(
            filename=str(path),
            include_paths=[str(path.parent)],
            output_style='expanded',
        )
    except sass.CompileError as e:
        raise TransformError(f"Sass error in {path.name}: {e}") from e


def compile_styles(source_globs: Sequence[str], dest_dir: Path) -> Path:
    """Compile every non-partial stylesheet and write the bundle.

    Partials (``_name.scss``) are only reachable through ``@import``.
    """
    sources = [p for p in collect_sources(source_globs) if not p.name.startswith('_')]
    if not sources:
        logger.warning("No stylesheets match %s", ", ".join(source_globs))

    compiled = [compile_stylesheet(path) for path in sources]
    output = write_text(Path(dest_dir) / OUTPUT_NAME, rcssmin.cssmin('\n'.join(compiled)))
    logger.info("Compiled %d stylesheet(s) -> %s", len(sources), output.name)
    return output
