"""Tests for BuildSession task states and resource release."""

from unittest.mock import MagicMock

import pytest

from assetflow.session import BuildSession, StateError, TaskState


class TestTaskStates:
    """Tests for the per-task state machine."""

    def test_initially_idle(self):
        session = BuildSession()
        assert session.state("styles") is TaskState.IDLE
        assert session.in_flight == []

    def test_begin_and_finish(self):
        session = BuildSession()
        session.begin("styles")
        assert session.state("styles") is TaskState.RUNNING
        assert session.in_flight == ["styles"]

        assert session.finish("styles") is False
        assert session.state("styles") is TaskState.IDLE
        assert session.runs["styles"] == 1

    def test_begin_twice_is_rejected(self):
        session = BuildSession()
        session.begin("styles")
        with pytest.raises(StateError):
            session.begin("styles")

    def test_begin_while_rerun_pending_is_rejected(self):
        session = BuildSession()
        session.begin("styles")
        session.trigger("styles")
        with pytest.raises(StateError):
            session.begin("styles")

    def test_finish_idle_is_rejected(self):
        session = BuildSession()
        with pytest.raises(StateError):
            session.finish("styles")

    def test_trigger_idle_task(self):
        session = BuildSession()
        assert session.trigger("styles") is False
        assert session.state("styles") is TaskState.IDLE

    def test_trigger_running_task_requests_one_rerun(self):
        session = BuildSession()
        session.begin("styles")

        assert session.trigger("styles") is True
        assert session.trigger("styles") is False
        assert session.state("styles") is TaskState.PENDING_RERUN

        assert session.finish("styles") is True
        assert session.state("styles") is TaskState.IDLE

    def test_independent_tasks(self):
        session = BuildSession()
        session.begin("styles")
        session.begin("scripts")
        assert sorted(session.in_flight) == ["scripts", "styles"]


class TestRelease:
    """Tests for releasing session resources."""

    def test_release_closes_everything(self):
        watch_a, watch_b, server = MagicMock(), MagicMock(), MagicMock()
        session = BuildSession(server=server, watches=[watch_a, watch_b])

        session.release()

        watch_a.close.assert_called_once()
        watch_b.close.assert_called_once()
        server.close.assert_called_once()
        assert session.watches == []
        assert session.server is None

    def test_release_twice(self):
        server = MagicMock()
        session = BuildSession(server=server)

        session.release()
        session.release()

        server.close.assert_called_once()

    def test_release_continues_after_error(self):
        broken, healthy, server = MagicMock(), MagicMock(), MagicMock()
        broken.close.side_effect = OSError("gone")
        session = BuildSession(server=server, watches=[broken, healthy])

        session.release()

        healthy.close.assert_called_once()
        server.close.assert_called_once()
