"""Task registry: task ids bound to rules and transforms.

The registry owns the glob index used to route a changed path to the task
that builds it, and validates the rule set before anything runs.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from .exceptions import ConfigError
from .matching import GlobIndex, normalize_path
from .rules import Category, PathRule
from .task import Task, Transform

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Ordered collection of Tasks with path lookup.

    Example:
        registry = TaskRegistry(base_path=Path("site"))
        registry.register(rule, compile_styles)
        registry.validate()

        task = registry.find("src/assets/sass/main.sass")
    """

    def __init__(self, base_path: Union[str, Path, None] = None):
        if base_path is None:
            base_path = Path.cwd()
        self.base_path = Path(base_path).resolve()
        self._tasks: Dict[str, Task] = {}
        self._by_category: Dict[Category, Task] = {}
        self._index: GlobIndex[Task] = GlobIndex()

    def register(
        self,
        rule: PathRule,
        transform: Transform,
        task_id: Optional[str] = None,
    ) -> Task:
        """Bind ``rule`` to ``transform`` and return the new Task.

        Raises:
            ConfigError: If the task id or the rule's category is taken.
        """
        if task_id is None:
            task_id = rule.category.task_id
        if task_id in self._tasks:
            raise ConfigError(f"Duplicate task id: {task_id}")
        if rule.category in self._by_category:
            raise ConfigError(
                f"Category '{rule.category.task_id}' already has a rule "
                f"(task '{self._by_category[rule.category].id}')"
            )
        if not rule.source_globs:
            raise ConfigError(f"Task '{task_id}' has no source globs")

        task = Task(task_id, rule, transform, base_path=self.base_path)
        self._tasks[task_id] = task
        self._by_category[rule.category] = task
        for glob in rule.watched:
            self._index.register(glob, task)
        return task

    def all(self) -> List[Task]:
        """Return every task in registration order."""
        return list(self._tasks.values())

    def get(self, task_id: str) -> Task:
        """Return the task named ``task_id``.

        Raises:
            KeyError: If no such task is registered.
        """
        try:
            return self._tasks[task_id]
        except KeyError:
            raise KeyError(f"Unknown task: {task_id}") from None

    def by_category(self, category: Category) -> Optional[Task]:
        return self._by_category.get(category)

    def find(self, path: Union[str, Path]) -> Optional[Task]:
        """Return the task whose watch globs match ``path``, or None.

        Absolute paths are made relative to the base path; paths outside
        it never match. If several tasks match (an overlap validation could
        not see), the first registered wins.
        """
        matches = self.find_all(path)
        if len(matches) > 1:
            logger.warning(
                "Path %s matches several tasks (%s), using '%s'",
                path, ", ".join(t.id for t in matches), matches[0].id,
            )
        return matches[0] if matches else None

    def find_all(self, path: Union[str, Path]) -> List[Task]:
        """Return every task whose watch globs match ``path``."""
        key = self._relative_key(path)
        if key is None:
            return []
        return self._index.find_all(key)

    def validate(self) -> None:
        """Check the rule set for ambiguity and unwritable outputs.

        Raises:
            ConfigError: If two rules share a glob, an existing file is
                matched by two rules, two globs visibly overlap, or a dest
                dir is not writable.
        """
        seen: Dict[str, str] = {}
        for task in self.all():
            for glob in task.rule.watched:
                key = normalize_path(glob)
                if key in seen and seen[key] != task.id:
                    raise ConfigError(
                        f"Glob '{glob}' is claimed by both '{seen[key]}' "
                        f"and '{task.id}'"
                    )
                seen[key] = task.id

        for task in self.all():
            for compiled in self._index.patterns_of(task):
                for path in compiled.glob(self.base_path):
                    owners = self.find_all(path)
                    if len(owners) > 1:
                        rel = path.relative_to(self.base_path).as_posix()
                        raise ConfigError(
                            f"{rel} is matched by several tasks: "
                            f"{', '.join(t.id for t in owners)}"
                        )

        tasks = self.all()
        for position, task in enumerate(tasks):
            for other in tasks[position + 1:]:
                for compiled in self._index.patterns_of(task):
                    for other_compiled in self._index.patterns_of(other):
                        sample = compiled.overlaps(other_compiled)
                        if sample is not None:
                            raise ConfigError(
                                f"Globs '{compiled.pattern}' ('{task.id}') and "
                                f"'{other_compiled.pattern}' ('{other.id}') overlap, "
                                f"both match {sample}"
                            )

        for task in self.all():
            if not _is_writable(task.dest_dir):
                raise ConfigError(
                    f"Destination of '{task.id}' is not writable: {task.dest_dir}"
                )

    def _relative_key(self, path: Union[str, Path]) -> Optional[str]:
        path = Path(path)
        if not path.is_absolute():
            return normalize_path(path)
        try:
            return normalize_path(path.relative_to(self.base_path))
        except ValueError:
            try:
                resolved = path.resolve().relative_to(self.base_path)
            except ValueError:
                return None
            return normalize_path(resolved)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self):
        return iter(self.all())

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tasks


def _is_writable(directory: Path) -> bool:
    """True if ``directory`` exists and is writable, or could be created."""
    current = directory
    while not current.exists():
        parent = current.parent
        if parent == current:
            return False
        current = parent
    return current.is_dir() and os.access(current, os.W_OK)
