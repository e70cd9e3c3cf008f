"""Tasks are the units the scheduler runs.

A Task binds one PathRule to the transform that builds it. Transforms are
callables ``transform(source_globs, dest_dir)`` that raise TransformError
on failure; they may be plain functions (run in a worker thread) or
coroutine functions (awaited on the event loop).
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, Tuple

from .exceptions import TransformError
from .rules import Category, PathRule

logger = logging.getLogger(__name__)

Transform = Callable[[Sequence[str], Path], Any]


@dataclass
class TaskResult:
    """Outcome of one task execution."""

    task_id: str
    ok: bool
    error: Optional[BaseException] = None
    duration: float = 0.0

    @property
    def failed(self) -> bool:
        return not self.ok


@dataclass
class Task:
    """A named, triggerable unit of build work.

    Attributes:
        id: Unique name within the registry (e.g. "styles")
        rule: The PathRule whose sources this task reads
        transform: Callable producing the rule's outputs
        base_path: Project root the rule's globs are relative to
    """

    id: str
    rule: PathRule
    transform: Transform = field(repr=False)
    base_path: Path = field(default_factory=Path.cwd)

    @property
    def category(self) -> Category:
        return self.rule.category

    @property
    def source_globs(self) -> Tuple[str, ...]:
        """Source globs anchored at the project base path."""
        base = self.base_path.as_posix().rstrip('/')
        return tuple(f"{base}/{glob}" for glob in self.rule.source_globs)

    @property
    def dest_dir(self) -> Path:
        return self.base_path / self.rule.dest_dir

    async def run(self) -> TaskResult:
        """Execute the transform once and report the outcome.

        Errors never propagate: a failing transform yields a failed
        TaskResult so the caller can decide whether to continue its chain.
        """
        start = time.perf_counter()
        logger.info("Starting '%s'...", self.id)
        try:
            if inspect.iscoroutinefunction(self.transform):
                await self.transform(self.source_globs, self.dest_dir)
            else:
                loop = asyncio.get_running_loop()
                await loop.run_in_executor(
                    None, self.transform, self.source_globs, self.dest_dir
                )
        except Exception as e:
            duration = time.perf_counter() - start
            if not isinstance(e, TransformError):
                e = TransformError(f"{type(e).__name__}: {e}", task_id=self.id)
            elif e.task_id is None:
                e.task_id = self.id
            logger.error("'%s' errored after %.3fs: %s", self.id, duration, e)
            return TaskResult(self.id, ok=False, error=e, duration=duration)

        duration = time.perf_counter() - start
        logger.info("Finished '%s' after %.3fs", self.id, duration)
        return TaskResult(self.id, ok=True, duration=duration)

    def __eq__(self, other):
        return isinstance(other, Task) and self.id == other.id

    def __hash__(self):
        return hash(self.id)
