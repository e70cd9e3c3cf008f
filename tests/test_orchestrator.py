"""Tests for Orchestrator session lifecycle."""

import asyncio

import pytest

from assetflow.exceptions import ConfigError, StartupError, TransformError
from assetflow.orchestrator import Orchestrator
from assetflow.registry import TaskRegistry
from assetflow.reload import NullReloadSignal
from assetflow.rules import Category, PathRule, default_rules

FULL_ORDER = ["styles", "scripts", "fonts", "images", "svg", "html"]


class FakeHandle:
    def __init__(self, globs):
        self.globs = list(globs)
        self.closed = 0

    def close(self):
        self.closed += 1


class FakeNotifier:
    """Records watch() calls; fails on the ``fail_on``-th call if set."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.handles = []
        self.callbacks = []

    def watch(self, globs, on_change):
        if self.fail_on is not None and len(self.handles) + 1 == self.fail_on:
            raise OSError("inotify watch limit reached")
        handle = FakeHandle(globs)
        self.handles.append(handle)
        self.callbacks.append(on_change)
        return handle


def recorder(task_id, log, fail=()):
    async def transform(source_globs, dest_dir):
        log.append(task_id)
        if task_id in fail:
            raise TransformError(f"{task_id} broke")
    return transform


def make_registry(base_path, log, fail=()):
    registry = TaskRegistry(base_path)
    for rule in default_rules():
        registry.register(rule, recorder(rule.category.task_id, log, fail))
    return registry


@pytest.fixture
def log():
    return []


class TestStart:
    """Tests for startup ordering and failures."""

    def test_start_builds_serves_and_watches(self, tmp_path, log):
        notifier = FakeNotifier()
        signal = NullReloadSignal()
        orchestrator = Orchestrator(make_registry(tmp_path, log), notifier, signal)

        async def scenario():
            server = await orchestrator.start()
            await orchestrator.stop()
            return server

        server = asyncio.run(scenario())

        assert log == FULL_ORDER
        assert signal.served == tmp_path / "build"
        assert server.closed
        assert len(notifier.handles) == 6
        assert notifier.handles[-1].globs == ["src/**/*.html"]

    def test_overlap_fails_before_anything_runs(self, tmp_path, log):
        (tmp_path / "src" / "lib").mkdir(parents=True)
        (tmp_path / "src" / "lib" / "a.css").write_text("")
        registry = TaskRegistry(tmp_path)
        registry.register(PathRule(Category.STYLE, "src/**/*.css", "build/a"), recorder("styles", log))
        registry.register(PathRule(Category.SCRIPT, "src/lib/*.css", "build/b"), recorder("scripts", log))
        notifier = FakeNotifier()
        signal = NullReloadSignal()
        orchestrator = Orchestrator(registry, notifier, signal)

        with pytest.raises(ConfigError):
            asyncio.run(orchestrator.start())

        assert log == []
        assert signal.served is None
        assert notifier.handles == []

    def test_initial_build_is_best_effort(self, tmp_path, log):
        orchestrator = Orchestrator(
            make_registry(tmp_path, log, fail={"styles", "images"}),
            FakeNotifier(),
            NullReloadSignal(),
        )

        async def scenario():
            await orchestrator.start()
            await orchestrator.stop()

        asyncio.run(scenario())

        assert log == FULL_ORDER

    def test_watch_failure_releases_handles(self, tmp_path, log):
        notifier = FakeNotifier(fail_on=3)
        signal = NullReloadSignal()
        orchestrator = Orchestrator(make_registry(tmp_path, log), notifier, signal)

        with pytest.raises(StartupError, match="inotify"):
            asyncio.run(orchestrator.start())

        assert len(notifier.handles) == 2
        assert all(handle.closed == 1 for handle in notifier.handles)
        assert orchestrator.session.server is None

    def test_serve_failure_is_startup_error(self, tmp_path, log):
        class FailingSignal(NullReloadSignal):
            def serve(self, base_dir, options=None):
                raise OSError("Address already in use")

        notifier = FakeNotifier()
        orchestrator = Orchestrator(make_registry(tmp_path, log), notifier, FailingSignal())

        with pytest.raises(StartupError, match="Address already in use"):
            asyncio.run(orchestrator.start())

        assert notifier.handles == []

    def test_start_twice(self, tmp_path, log):
        orchestrator = Orchestrator(make_registry(tmp_path, log), FakeNotifier(), NullReloadSignal())

        async def scenario():
            await orchestrator.start()
            try:
                with pytest.raises(StartupError):
                    await orchestrator.start()
            finally:
                await orchestrator.stop()

        asyncio.run(scenario())


class TestChanges:
    """Tests for notifier callbacks reaching the scheduler."""

    def test_change_triggers_rebuild_and_reload(self, tmp_path, log):
        notifier = FakeNotifier()
        signal = NullReloadSignal()
        orchestrator = Orchestrator(make_registry(tmp_path, log), notifier, signal)

        async def scenario():
            async with orchestrator:
                log.clear()
                styles_callback = notifier.callbacks[0]
                styles_callback(str(tmp_path / "src" / "assets" / "sass" / "main.sass"))
                await asyncio.sleep(0.01)
                await orchestrator.scheduler.wait_idle()

        asyncio.run(scenario())

        assert log == ["styles"]
        assert signal.notifications == 1

    def test_callback_from_other_thread(self, tmp_path, log):
        notifier = FakeNotifier()
        signal = NullReloadSignal()
        orchestrator = Orchestrator(make_registry(tmp_path, log), notifier, signal)

        async def scenario():
            async with orchestrator:
                log.clear()
                html_callback = notifier.callbacks[-1]
                await asyncio.get_running_loop().run_in_executor(
                    None, html_callback, str(tmp_path / "src" / "partials" / "nav.html")
                )
                await asyncio.sleep(0.01)
                await orchestrator.scheduler.wait_idle()

        asyncio.run(scenario())

        assert log == FULL_ORDER
        assert signal.notifications == 1


class TestStop:
    """Tests for shutdown."""

    def test_stop_is_idempotent(self, tmp_path, log):
        notifier = FakeNotifier()
        orchestrator = Orchestrator(make_registry(tmp_path, log), notifier, NullReloadSignal())

        async def scenario():
            server = await orchestrator.start()
            await orchestrator.stop()
            await orchestrator.stop()
            return server

        server = asyncio.run(scenario())

        assert server.closed
        assert all(handle.closed == 1 for handle in notifier.handles)
        assert orchestrator.session.watches == []

    def test_stop_before_start(self, tmp_path, log):
        orchestrator = Orchestrator(make_registry(tmp_path, log), FakeNotifier(), NullReloadSignal())
        asyncio.run(orchestrator.stop())

    def test_serve_forever_until_request_stop(self, tmp_path, log):
        orchestrator = Orchestrator(make_registry(tmp_path, log), FakeNotifier(), NullReloadSignal())

        async def scenario():
            runner = asyncio.ensure_future(orchestrator.serve_forever())
            while orchestrator.session.server is None:
                await asyncio.sleep(0.001)
            orchestrator.request_stop()
            await runner

        asyncio.run(scenario())

        assert orchestrator.session.server is None

    def test_serve_forever_cancelled(self, tmp_path, log):
        notifier = FakeNotifier()
        orchestrator = Orchestrator(make_registry(tmp_path, log), notifier, NullReloadSignal())

        async def scenario():
            runner = asyncio.ensure_future(orchestrator.serve_forever())
            while orchestrator.session.server is None:
                await asyncio.sleep(0.001)
            runner.cancel()
            with pytest.raises(asyncio.CancelledError):
                await runner

        asyncio.run(scenario())

        assert all(handle.closed >= 1 for handle in notifier.handles)


class TestBuildOnce:
    """Tests for one-shot builds and cleaning."""

    def test_build_once_returns_results(self, tmp_path, log):
        orchestrator = Orchestrator(
            make_registry(tmp_path, log, fail={"svg"}), FakeNotifier(), NullReloadSignal()
        )

        results = asyncio.run(orchestrator.build_once())

        assert [r.task_id for r in results] == FULL_ORDER
        assert [r.task_id for r in results if r.failed] == ["svg"]

    def test_clean_removes_outputs(self, tmp_path, log):
        (tmp_path / "build" / "assets" / "css").mkdir(parents=True)
        (tmp_path / "build" / "index.html").write_text("old")
        orchestrator = Orchestrator(make_registry(tmp_path, log), FakeNotifier(), NullReloadSignal())

        removed = orchestrator.clean()

        assert tmp_path / "build" in removed
        assert not (tmp_path / "build").exists()
