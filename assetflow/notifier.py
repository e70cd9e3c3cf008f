"""Change notifier: filesystem watching for source globs.

``watch(globs, on_change)`` arms a watch and returns a WatchHandle. The
callback receives the changed path and may be invoked from a watcher
thread; callers bridge it into their event loop themselves.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Union, runtime_checkable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .matching import GlobPattern

logger = logging.getLogger(__name__)

OnChange = Callable[[str], None]


@runtime_checkable
class WatchHandle(Protocol):
    def close(self) -> None:
        """Stop delivering events. Safe to call more than once."""
        ...


@runtime_checkable
class ChangeNotifier(Protocol):
    def watch(self, globs: Sequence[str], on_change: OnChange) -> WatchHandle:
        """Call ``on_change(path)`` for every mutation matching ``globs``."""
        ...


class GlobEventHandler(FileSystemEventHandler):
    """Forward file events whose path matches any of the globs.

    Paths are matched relative to ``base_path``; moves report the
    destination path.
    """

    def __init__(self, patterns: List[GlobPattern], base_path: Path, on_change: OnChange):
        super().__init__()
        self.patterns = patterns
        self.base_path = base_path
        self.on_change = on_change

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        if event.event_type not in ('created', 'modified', 'moved', 'deleted'):
            return
        path = getattr(event, 'dest_path', '') or event.src_path
        if isinstance(path, bytes):
            path = path.decode()
        if self.matches(path):
            self.on_change(path)

    def matches(self, path: str) -> bool:
        try:
            rel = Path(path).relative_to(self.base_path)
        except ValueError:
            return False
        return any(pattern.matches(rel) for pattern in self.patterns)


class WatchdogWatch:
    """Handler registrations of one ``watch()`` call."""

    def __init__(self, notifier: 'WatchdogNotifier', handler, watches: list):
        self._notifier = notifier
        self._handler = handler
        self._watches = watches

    def close(self) -> None:
        watches, self._watches = self._watches, []
        for watch in watches:
            self._notifier.remove_handler(self._handler, watch)


class WatchdogNotifier:
    """ChangeNotifier backed by a watchdog Observer.

    Each glob's static root directory is watched recursively; events are
    filtered through the compiled globs before reaching the callback.
    The observer thread starts with the first ``watch()`` call.

    Example:
        notifier = WatchdogNotifier(base_path=Path("."))
        handle = notifier.watch(["src/assets/js/*.js"], print)
        ...
        handle.close()
        notifier.close()
    """

    def __init__(self, base_path: Union[str, Path, None] = None, observer=None):
        if base_path is None:
            base_path = Path.cwd()
        self.base_path = Path(base_path).resolve()
        self._observer = observer if observer is not None else Observer()
        self._started = False

    def watch(self, globs: Sequence[str], on_change: OnChange) -> WatchHandle:
        patterns = [GlobPattern(glob) for glob in globs]
        handler = GlobEventHandler(patterns, self.base_path, on_change)

        roots: List[Path] = []
        for pattern in patterns:
            for root in pattern.static_roots:
                directory = self._existing_dir(self.base_path / root)
                if directory not in roots:
                    roots.append(directory)

        watches = []
        for directory in roots:
            logger.debug("Watching %s for %s", directory, ", ".join(globs))
            watches.append(
                self._observer.schedule(handler, str(directory), recursive=True)
            )

        if not self._started:
            self._observer.start()
            self._started = True
        return WatchdogWatch(self, handler, watches)

    def remove_handler(self, handler, watch) -> None:
        # Directories may be shared with other watch() calls
        try:
            self._observer.remove_handler_for_watch(handler, watch)
        except KeyError:
            pass

    def close(self) -> None:
        """Stop the observer thread."""
        if self._started:
            self._observer.stop()
            self._observer.join()
            self._started = False

    def _existing_dir(self, directory: Path) -> Path:
        """Nearest existing ancestor, so globs over missing dirs still fire."""
        current = directory
        while not current.is_dir() and current != self.base_path:
            current = current.parent
        return current

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> Optional[bool]:
        self.close()
        return None
