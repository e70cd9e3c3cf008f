"""Reload signal: preview server lifecycle and browser reload notifications.

The scheduler only needs ``notify()``. The orchestrator also calls
``serve(base_dir, options)`` once and releases the returned ServerHandle
on shutdown.

LiveReloadSignal runs a livereload Server on a background thread with its
own event loop. Reloads are requested by flagging the server's watcher,
which livereload polls, so the browser reload protocol stays entirely
inside livereload.
"""

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from .exceptions import StartupError

logger = logging.getLogger(__name__)


@dataclass
class ServeOptions:
    """Preview server settings."""

    host: str = '127.0.0.1'
    port: int = 3000
    liveport: Optional[int] = None
    open_browser: bool = False
    live_css: bool = True
    startup_timeout: float = 5.0

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


@runtime_checkable
class ServerHandle(Protocol):
    """A running preview server."""

    def close(self) -> None:
        """Stop serving. Safe to call more than once."""
        ...


@runtime_checkable
class ReloadSignal(Protocol):
    """Notifies connected live-preview clients."""

    def notify(self) -> None:
        """Ask clients to reload. No-op when nobody is connected."""
        ...

    def serve(self, base_dir: Path, options: ServeOptions) -> ServerHandle:
        """Start serving ``base_dir``."""
        ...


class NullServerHandle:
    """Handle for a server that was never started."""

    def __init__(self):
        self.closed = False

    def close(self) -> None:
        self.closed = True


class NullReloadSignal:
    """Reload signal without a server. Counts notifications."""

    def __init__(self):
        self.notifications = 0
        self.served: Optional[Path] = None

    def notify(self) -> None:
        self.notifications += 1

    def serve(self, base_dir: Path, options: ServeOptions = None) -> ServerHandle:
        self.served = Path(base_dir)
        return NullServerHandle()


def _make_watcher_class():
    from livereload.watcher import Watcher

    class SignalWatcher(Watcher):
        """livereload watcher that reports a change only when flagged.

        livereload polls ``examine()`` from its own loop; filesystem
        scanning is left to the assetflow notifier.
        """

        def __init__(self):
            super().__init__()
            self.reload_requested = threading.Event()

        def examine(self):
            if self._changes:
                return self._changes.pop()
            self.filepath = None
            if self.reload_requested.is_set():
                self.reload_requested.clear()
                return '__livereload__', 0
            return None, None

    return SignalWatcher


class LiveReloadServerHandle:
    """A livereload server running on a daemon thread."""

    def __init__(self, base_dir: Path, options: ServeOptions, watcher):
        self.base_dir = base_dir
        self.options = options
        self.watcher = watcher
        self._ioloop = None
        self._error: Optional[BaseException] = None
        self._ready = threading.Event()
        self._thread = threading.Thread(
            target=self._serve, name='assetflow-livereload', daemon=True
        )

    def start(self) -> 'LiveReloadServerHandle':
        self._thread.start()
        if not self._ready.wait(self.options.startup_timeout):
            raise StartupError(
                f"Preview server did not start within {self.options.startup_timeout}s"
            )
        if self._error is not None:
            raise StartupError(
                f"Could not serve {self.base_dir} on {self.options.url}: {self._error}"
            ) from self._error
        logger.info("Serving %s at %s", self.base_dir, self.options.url)
        return self

    def _serve(self) -> None:
        from livereload import Server
        from tornado.ioloop import IOLoop

        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            self._ioloop = IOLoop.current()
            self._ioloop.add_callback(self._ready.set)
            server = Server(watcher=self.watcher)
            server.serve(
                host=self.options.host,
                port=self.options.port,
                liveport=self.options.liveport,
                root=str(self.base_dir),
                live_css=self.options.live_css,
                open_url_delay=0.5 if self.options.open_browser else None,
            )
        except Exception as e:
            self._error = e
        finally:
            self._ready.set()
            loop.close()

    @property
    def running(self) -> bool:
        return self._thread.is_alive()

    def close(self) -> None:
        if self._ioloop is not None and self._thread.is_alive():
            self._ioloop.add_callback(self._ioloop.stop)
            self._thread.join(timeout=5)
        self._ioloop = None


class LiveReloadSignal:
    """Reload signal backed by a livereload preview server."""

    def __init__(self):
        self._watcher = None

    def serve(self, base_dir: Path, options: ServeOptions = None) -> ServerHandle:
        if options is None:
            options = ServeOptions()
        base_dir = Path(base_dir)
        base_dir.mkdir(parents=True, exist_ok=True)
        self._watcher = _make_watcher_class()()
        self._watcher.watch(str(base_dir))
        return LiveReloadServerHandle(base_dir, options, self._watcher).start()

    def notify(self) -> None:
        if self._watcher is None:
            return
        self._watcher.reload_requested.set()
