"""Incremental scheduler: change events in, task runs and reloads out.

The scheduler owns a single control loop on the asyncio event loop:

1. Wait for a ChangeEvent, then drain every event already queued into
   one burst (after an optional debounce delay)
2. Resolve each event to a chain of task ids via the registry
3. Coalesce the chains so every task runs at most once per burst
4. Run the chains; a failed task aborts the rest of its own chain, but a
   task whose own files changed in the burst still runs
5. Signal a reload exactly once for the burst

Events arriving while a burst runs stay in the queue and form the next
burst, so any number of changes to a running task yield one re-run.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, List, Optional, Tuple, TYPE_CHECKING

from ..events import ChangeEvent
from ..rules import Category
from ..session import BuildSession
from ..task import TaskResult
from .chains import CHAINS, chain_for, merge_chains

if TYPE_CHECKING:
    from ..registry import TaskRegistry
    from ..reload import ReloadSignal

logger = logging.getLogger(__name__)

_STOP = object()


@dataclass
class BurstReport:
    """What happened while handling one burst."""

    events: List[ChangeEvent] = field(default_factory=list)
    chains: List[Tuple[str, ...]] = field(default_factory=list)
    results: List[TaskResult] = field(default_factory=list)
    reloaded: bool = False

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def executed(self) -> List[str]:
        """Task ids in the order they ran."""
        return [result.task_id for result in self.results]


class IncrementalScheduler:
    """Turn bursts of change events into task runs and one reload each.

    Example:
        scheduler = IncrementalScheduler(registry, reload_signal)
        loop_task = asyncio.create_task(scheduler.run())

        scheduler.submit(ChangeEvent("src/assets/sass/main.sass"))
        await scheduler.wait_idle()

        await scheduler.stop()
    """

    def __init__(
        self,
        registry: 'TaskRegistry',
        reload_signal: 'ReloadSignal',
        session: Optional[BuildSession] = None,
        debounce: float = 0.0,
        chains: Optional[Dict[Category, Tuple[Category, ...]]] = None,
        concurrent_chains: bool = False,
        history_size: int = 100,
    ):
        self.registry = registry
        self.reload_signal = reload_signal
        self.session = session if session is not None else BuildSession()
        self.debounce = debounce
        self.chains = chains if chains is not None else CHAINS
        self.concurrent_chains = concurrent_chains
        self.history: Deque[BurstReport] = deque(maxlen=history_size)
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self._loop_task: Optional[asyncio.Task] = None

    def resolve(self, event: ChangeEvent) -> Tuple[str, ...]:
        """Return the ids of the tasks to run for ``event``, in order.

        Unmatched paths resolve to an empty chain.
        """
        task = self.registry.find(event.path)
        if task is None:
            return ()

        chain = []
        for category in chain_for(task.category, self.chains):
            member = self.registry.by_category(category)
            if member is not None and member.id not in chain:
                chain.append(member.id)
        if task.id not in chain:
            chain.append(task.id)
        return tuple(chain)

    def submit(self, event: ChangeEvent) -> None:
        """Queue ``event``. Must be called on the event loop thread."""
        if self._closed:
            logger.debug("Scheduler stopped, dropping %s", event.path)
            return
        for task_id in self.resolve(event):
            self.session.trigger(task_id)
        self._queue.put_nowait(event)

    def submit_threadsafe(
        self, event: ChangeEvent, loop: asyncio.AbstractEventLoop
    ) -> None:
        """Queue ``event`` from another thread (e.g. a watcher thread)."""
        loop.call_soon_threadsafe(self.submit, event)

    def start(self) -> asyncio.Task:
        """Run the control loop as a background task."""
        if self._loop_task is None:
            self._loop_task = asyncio.get_running_loop().create_task(self.run())
        return self._loop_task

    async def run(self) -> None:
        """Control loop. Returns once stop() has been requested."""
        while True:
            event = await self._queue.get()
            if event is _STOP:
                self._queue.task_done()
                return

            if self.debounce > 0:
                await asyncio.sleep(self.debounce)

            batch = [event]
            consumed = 1
            stop_after = False
            while True:
                try:
                    item = self._queue.get_nowait()
                except asyncio.QueueEmpty:
                    break
                consumed += 1
                if item is _STOP:
                    stop_after = True
                else:
                    batch.append(item)

            try:
                await self.process(batch)
            except Exception:
                logger.exception("Unexpected error handling %d event(s)", len(batch))
            finally:
                for _ in range(consumed):
                    self._queue.task_done()

            if stop_after:
                return

    async def process(self, events: List[ChangeEvent]) -> BurstReport:
        """Handle one burst of events and return what happened."""
        report = BurstReport(events=list(events))

        chains = []
        for event in events:
            chain = self.resolve(event)
            if not chain:
                logger.debug("No task watches %s, ignoring", event.path)
                continue
            logger.info("Changed: %s", event.path)
            chains.append(chain)

        report.chains = merge_chains(chains)
        if not report.chains:
            self.history.append(report)
            return report

        for chain in report.chains:
            report.results.extend(await self._run_chain(chain))

        # Direct triggers absorbed into a chain that aborted before reaching them
        ran = set(report.executed)
        for task_id in _direct_triggers(chains):
            if task_id not in ran:
                logger.info("Running '%s' skipped by an aborted chain", task_id)
                report.results.append(await self._execute(task_id))
                ran.add(task_id)

        self._notify()
        report.reloaded = True
        self.history.append(report)
        return report

    async def _run_chain(self, chain: Tuple[str, ...]) -> List[TaskResult]:
        """Run one chain, stopping at the first failure."""
        if self.concurrent_chains and len(chain) > 2:
            head, last = chain[:-1], chain[-1]
            results = list(await asyncio.gather(*(self._execute(tid) for tid in head)))
            if not all(result.ok for result in results):
                self._log_abort(chain, [last])
                return results
            results.append(await self._execute(last))
            return results

        results = []
        for position, task_id in enumerate(chain):
            result = await self._execute(task_id)
            results.append(result)
            if result.failed:
                self._log_abort(chain, chain[position + 1:])
                break
        return results

    async def _execute(self, task_id: str) -> TaskResult:
        task = self.registry.get(task_id)
        self.session.begin(task_id)
        try:
            return await task.run()
        finally:
            if self.session.finish(task_id):
                logger.debug("'%s' changed while running, re-run queued", task_id)

    def _log_abort(self, chain, skipped) -> None:
        if skipped:
            logger.warning(
                "Chain %s aborted, skipped: %s",
                " -> ".join(chain), ", ".join(skipped),
            )

    def _notify(self) -> None:
        try:
            self.reload_signal.notify()
        except Exception:
            logger.exception("Reload signal failed")

    async def wait_idle(self) -> None:
        """Wait until every queued event has been handled."""
        await self._queue.join()

    async def stop(self) -> None:
        """Stop accepting events and let the in-flight burst finish.

        Events already queued are still handled.
        """
        if self._closed:
            if self._loop_task is not None:
                await self._loop_task
            return
        self._closed = True
        self._queue.put_nowait(_STOP)
        if self._loop_task is not None:
            await self._loop_task

    @property
    def pending(self) -> int:
        """Number of queued events not yet picked up."""
        return self._queue.qsize()


def _direct_triggers(chains: List[Tuple[str, ...]]) -> List[str]:
    """Task ids that a change triggered on their own, in burst order."""
    triggers: List[str] = []
    for chain in chains:
        if len(chain) == 1 and chain[0] not in triggers:
            triggers.append(chain[0])
    return triggers
