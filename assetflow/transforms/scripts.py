"""Script bundling: minify each source and concatenate into ``main.min.js``."""

import logging
from pathlib import Path
from typing import Sequence

import rjsmin

from .base import collect_sources, read_text, write_text

logger = logging.getLogger(__name__)

OUTPUT_NAME = 'main.min.js'


def bundle_scripts(source_globs: Sequence[str], dest_dir: Path) -> Path:
    """Minify matched scripts in glob order and write the bundle."""
    sources = collect_sources(source_globs)
    if not sources:
        logger.warning("No scripts match %s", ", ".join(source_globs))

    parts = []
    for path in sources:
        minified = rjsmin.jsmin(read_text(path)).strip()
        if minified:
            # Each file must end its last statement before the next begins
            parts.append(minified.rstrip(';') + ';')

    output = write_text(Path(dest_dir) / OUTPUT_NAME, '\n'.join(parts))
    logger.info("Bundled %d script(s) -> %s", len(sources), output.name)
    return output
