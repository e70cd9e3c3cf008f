"""Tests for reload signals."""

import pytest

from assetflow.reload import (
    LiveReloadSignal,
    NullReloadSignal,
    NullServerHandle,
    ReloadSignal,
    ServeOptions,
    ServerHandle,
)


class TestServeOptions:
    """Tests for ServeOptions."""

    def test_defaults(self):
        options = ServeOptions()
        assert options.url == "http://127.0.0.1:3000"
        assert options.open_browser is False

    def test_url(self):
        assert ServeOptions(host="0.0.0.0", port=8080).url == "http://0.0.0.0:8080"


class TestNullReloadSignal:
    """Tests for the server-less signal."""

    def test_counts_notifications(self):
        signal = NullReloadSignal()
        signal.notify()
        signal.notify()
        assert signal.notifications == 2

    def test_serve_returns_handle(self, tmp_path):
        signal = NullReloadSignal()
        handle = signal.serve(tmp_path / "build", ServeOptions())

        assert signal.served == tmp_path / "build"
        assert isinstance(handle, NullServerHandle)
        handle.close()
        assert handle.closed

    def test_protocols(self):
        assert isinstance(NullReloadSignal(), ReloadSignal)
        assert isinstance(NullServerHandle(), ServerHandle)
        assert isinstance(LiveReloadSignal(), ReloadSignal)


class TestLiveReloadSignal:
    """Tests for the livereload-backed signal without starting a server."""

    def test_notify_before_serve_is_noop(self):
        LiveReloadSignal().notify()

    def test_watcher_reports_flagged_reload_once(self):
        pytest.importorskip("livereload")
        from assetflow.reload import _make_watcher_class

        watcher = _make_watcher_class()()
        assert watcher.examine() == (None, None)

        watcher.reload_requested.set()
        assert watcher.examine() == ('__livereload__', 0)
        assert watcher.examine() == (None, None)
