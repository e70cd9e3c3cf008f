"""HTML assembly from partials.

Pages may pull in partials with::

    @@include('partials/header.html')
    @@include('partials/nav.html', {"active": "home"})

Include paths are relative to the including file. Parameters are exposed
to the partial (and its own includes) as ``@@name`` variables; unknown
variables are left untouched.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..exceptions import TransformError
from .base import iter_matches, read_text, write_text

logger = logging.getLogger(__name__)

INCLUDE_RE = re.compile(r"@@include\(\s*(['\"])(?P<path>[^'\"]+)\1\s*")
VARIABLE_RE = re.compile(r"@@(?P<name>[A-Za-z_][\w.]*)")


class HtmlAssembler:
    """Expand ``@@include`` directives recursively.

    Raises TransformError for missing partials, malformed directives and
    include cycles.
    """

    def __init__(self, max_depth: int = 32):
        self.max_depth = max_depth
        self._decoder = json.JSONDecoder()

    def render_file(self, path: Path, context: Dict[str, Any] = None) -> str:
        return self._render_file(Path(path), context or {}, [])

    def _render_file(self, path: Path, context: Dict[str, Any], stack: List[Path]) -> str:
        resolved = path.resolve()
        if resolved in stack:
            cycle = ' -> '.join(p.name for p in stack + [resolved])
            raise TransformError(f"Include cycle: {cycle}")
        if len(stack) >= self.max_depth:
            raise TransformError(f"Includes nested deeper than {self.max_depth} in {path}")
        if not resolved.is_file():
            including = stack[-1].name if stack else '<page>'
            raise TransformError(f"Missing include {path} (from {including})")

        text = read_text(resolved)
        return self._render(text, resolved, context, stack + [resolved])

    def _render(self, text: str, current: Path, context: Dict[str, Any], stack: List[Path]) -> str:
        out = []
        pos = 0
        while True:
            match = INCLUDE_RE.search(text, pos)
            if match is None:
                break
            out.append(text[pos:match.start()])
            cursor = match.end()

            params: Dict[str, Any] = {}
            if text.startswith(',', cursor):
                cursor = _skip_space(text, cursor + 1)
                try:
                    params, cursor = self._decoder.raw_decode(text, cursor)
                except json.JSONDecodeError as e:
                    raise TransformError(
                        f"Bad @@include parameters in {current.name}: {e.msg}"
                    ) from e
                if not isinstance(params, dict):
                    raise TransformError(
                        f"@@include parameters in {current.name} must be an object"
                    )
                cursor = _skip_space(text, cursor)

            if not text.startswith(')', cursor):
                raise TransformError(f"Unterminated @@include in {current.name}")
            cursor += 1

            partial = current.parent / match.group('path')
            out.append(self._render_file(partial, {**context, **params}, stack))
            pos = cursor

        out.append(text[pos:])
        return substitute(''.join(out), context)


def substitute(text: str, context: Dict[str, Any]) -> str:
    """Replace ``@@name`` (and ``@@a.b`` for nested objects) from context."""
    if not context:
        return text

    def replace(match):
        value: Any = context
        for part in match.group('name').split('.'):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return match.group(0)
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)

    return VARIABLE_RE.sub(replace, text)


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def assemble_html(source_globs: Sequence[str], dest_dir: Path) -> List[Path]:
    """Render every matched page into ``dest_dir``."""
    assembler = HtmlAssembler()
    dest_dir = Path(dest_dir)
    written = []
    for root, page in iter_matches(source_globs):
        html = assembler.render_file(page)
        written.append(write_text(dest_dir / page.relative_to(root), html))

    logger.info("Assembled %d page(s) -> %s", len(written), dest_dir)
    return written
