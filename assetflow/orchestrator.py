"""Orchestrator: wires registry, notifier, scheduler and reload signal.

Session lifecycle:
1. Validate the registry (ConfigError, nothing has run yet)
2. Run every task once in registry order, best effort
3. Serve the build directory through the reload signal
4. Arm the notifier for every rule's watch globs
5. Hand change events to the scheduler until stop()

Watch handles and the server handle live in the BuildSession and are
released on every exit path, including startup failure.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from .events import ChangeEvent
from .exceptions import StartupError
from .reload import ServeOptions
from .scheduler import IncrementalScheduler
from .session import BuildSession
from .task import TaskResult

if TYPE_CHECKING:
    from .notifier import ChangeNotifier
    from .registry import TaskRegistry
    from .reload import ReloadSignal, ServerHandle
    from .rules import PathRule

logger = logging.getLogger(__name__)


class Orchestrator:
    """Run a development session.

    Example:
        orchestrator = Orchestrator(registry, notifier, LiveReloadSignal(),
                                    build_dir=Path("build"))
        asyncio.run(orchestrator.serve_forever())
    """

    def __init__(
        self,
        registry: 'TaskRegistry',
        notifier: 'ChangeNotifier',
        reload_signal: 'ReloadSignal',
        build_dir: Optional[Path] = None,
        serve_options: Optional[ServeOptions] = None,
        debounce: float = 0.0,
        concurrent_chains: bool = False,
    ):
        self.registry = registry
        self.notifier = notifier
        self.reload_signal = reload_signal
        self.build_dir = Path(build_dir) if build_dir is not None else registry.base_path / 'build'
        self.serve_options = serve_options or ServeOptions()
        self.session = BuildSession()
        self.scheduler = IncrementalScheduler(
            registry,
            reload_signal,
            self.session,
            debounce=debounce,
            concurrent_chains=concurrent_chains,
        )
        self._started = False
        self._stop_requested: Optional[asyncio.Event] = None
        self._teardown: Optional[asyncio.Future] = None

    async def build_once(self, clean: bool = False) -> List[TaskResult]:
        """Run every task once, in registry order.

        Failures are logged and do not stop the remaining tasks.
        """
        if clean:
            self.clean()
        results = []
        for task in self.registry.all():
            self.session.begin(task.id)
            try:
                results.append(await task.run())
            finally:
                self.session.finish(task.id)

        failed = [r.task_id for r in results if r.failed]
        if failed:
            logger.warning("Initial build finished with errors in: %s", ", ".join(failed))
        return results

    def clean(self) -> List[Path]:
        """Delete every task's destination directory and the build dir."""
        removed = []
        targets = [task.dest_dir for task in self.registry.all()] + [self.build_dir]
        for directory in targets:
            if directory.is_dir():
                shutil.rmtree(directory)
                removed.append(directory)
                logger.info("Removed %s", directory)
        return removed

    async def start(self) -> 'ServerHandle':
        """Validate, build, serve and start watching.

        Raises:
            ConfigError: If the registry is invalid. Nothing has run.
            StartupError: If serving or watching failed. Everything
                acquired so far has been released.
        """
        if self._started:
            raise StartupError("Session already started")
        self.registry.validate()
        self._started = True
        self._stop_requested = asyncio.Event()

        await self.build_once()

        try:
            try:
                self.session.server = self.reload_signal.serve(self.build_dir, self.serve_options)
            except StartupError:
                raise
            except Exception as e:
                raise StartupError(f"Could not start preview server: {e}") from e

            loop = asyncio.get_running_loop()
            for task in self.registry.all():
                try:
                    handle = self.notifier.watch(
                        list(task.rule.watched),
                        self._on_change(task.rule, loop),
                    )
                except Exception as e:
                    raise StartupError(f"Could not watch sources of '{task.id}': {e}") from e
                self.session.watches.append(handle)

            self.scheduler.start()
        except BaseException:
            self.session.release()
            self._stop_requested.set()
            raise

        logger.info("Watching %d task(s) for changes", len(self.registry))
        return self.session.server

    def _on_change(self, rule: 'PathRule', loop: asyncio.AbstractEventLoop):
        def on_change(path: str) -> None:
            self.scheduler.submit_threadsafe(ChangeEvent(str(path), rule), loop)
        return on_change

    def request_stop(self) -> None:
        """Ask serve_forever() to shut down. Must be called on the loop thread."""
        if self._stop_requested is not None:
            self._stop_requested.set()

    async def stop(self) -> None:
        """Stop watching, drain in-flight work and release the server.

        Concurrent and repeated calls wait for the same teardown.
        """
        if not self._started:
            return
        self.request_stop()
        if self._teardown is None:
            self._teardown = asyncio.ensure_future(self._shutdown())
        await asyncio.shield(self._teardown)

    async def _shutdown(self) -> None:
        self.session.close_watches()
        try:
            await self.scheduler.stop()
        finally:
            self.session.release()
            logger.info("Session stopped")

    async def wait_stopped(self) -> None:
        if self._stop_requested is not None:
            await self._stop_requested.wait()

    async def serve_forever(self) -> None:
        """start(), then wait until stop() is requested or cancelled."""
        await self.start()
        try:
            await self.wait_stopped()
        finally:
            await self.stop()

    async def __aenter__(self) -> 'Orchestrator':
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
