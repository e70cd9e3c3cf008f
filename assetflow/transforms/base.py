"""Helpers shared by the built-in transforms."""

import logging
import shutil
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from ..exceptions import TransformError
from ..matching import GlobPattern

logger = logging.getLogger(__name__)


def iter_matches(source_globs: Sequence[str]) -> Iterator[Tuple[Path, Path]]:
    """Yield ``(root, path)`` for every file matched by ``source_globs``.

    ``root`` is the static directory of the glob alternative that matched,
    so ``path.relative_to(root)`` is the path to reproduce under the
    destination. Files are yielded once, in glob order, sorted per glob.
    """
    seen = set()
    for glob in source_globs:
        compiled = GlobPattern(glob)
        roots = [Path.cwd() / root for root in compiled.static_roots]
        for path in compiled.glob():
            if path in seen:
                continue
            seen.add(path)
            root = _deepest_root(path, roots)
            yield root, path


def collect_sources(source_globs: Sequence[str]) -> List[Path]:
    """Return every file matched by ``source_globs`` (see iter_matches)."""
    return [path for _root, path in iter_matches(source_globs)]


def _deepest_root(path: Path, roots: List[Path]) -> Path:
    best = None
    for root in roots:
        try:
            path.relative_to(root)
        except ValueError:
            continue
        if best is None or len(root.parts) > len(best.parts):
            best = root
    return best if best is not None else path.parent


def write_text(dest: Path, content: str) -> Path:
    """Write ``content`` to ``dest``, creating parent directories."""
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(content, encoding='utf-8')
    except OSError as e:
        raise TransformError(f"Cannot write {dest}: {e}") from e
    logger.debug("Wrote %s", dest)
    return dest


def copy_if_newer(src: Path, dst: Path) -> bool:
    """Copy src to dst if src is newer. Return True if copied."""
    if dst.exists() and dst.stat().st_mtime >= src.stat().st_mtime:
        return False
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)
    return True


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise TransformError(f"Cannot read {path}: {e}") from e
