"""Plain copies for fonts, images and SVGs.

Files keep their path below the glob's static directory. Unchanged files
(destination at least as new as the source) are skipped.
"""

import logging
from pathlib import Path
from typing import List, Sequence

from ..exceptions import TransformError
from .base import copy_if_newer, iter_matches

logger = logging.getLogger(__name__)


def copy_assets(source_globs: Sequence[str], dest_dir: Path) -> List[Path]:
    """Copy matched files into ``dest_dir``. Return the copied destinations."""
    dest_dir = Path(dest_dir)
    copied = []
    total = 0
    for root, path in iter_matches(source_globs):
        total += 1
        target = dest_dir / path.relative_to(root)
        try:
            if copy_if_newer(path, target):
                copied.append(target)
        except OSError as e:
            raise TransformError(f"Cannot copy {path} -> {target}: {e}") from e

    logger.info("Copied %d of %d file(s) -> %s", len(copied), total, dest_dir)
    return copied
