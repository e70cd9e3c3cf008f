"""Tests for Task execution and results."""

import asyncio
from pathlib import Path

from assetflow.exceptions import TransformError
from assetflow.rules import Category, PathRule
from assetflow.task import Task, TaskResult


RULE = PathRule(Category.SCRIPT, ("src/*.js", "vendor/*.js"), "build/js")


class TestTaskResult:
    """Tests for TaskResult."""

    def test_failed(self):
        assert TaskResult("styles", ok=False).failed is True
        assert TaskResult("styles", ok=True).failed is False


class TestTaskProperties:
    """Tests for path resolution against the base path."""

    def test_source_globs_are_anchored(self):
        task = Task("scripts", RULE, lambda g, d: None, base_path=Path("/site"))
        assert task.source_globs == ("/site/src/*.js", "/site/vendor/*.js")

    def test_dest_dir(self):
        task = Task("scripts", RULE, lambda g, d: None, base_path=Path("/site"))
        assert task.dest_dir == Path("/site/build/js")
        assert task.category is Category.SCRIPT

    def test_equality_by_id(self):
        a = Task("scripts", RULE, lambda g, d: None)
        b = Task("scripts", RULE, lambda g, d: 1)
        assert a == b
        assert len({a, b}) == 1


class TestTaskRun:
    """Tests for Task.run."""

    def test_sync_transform(self):
        calls = []

        def transform(source_globs, dest_dir):
            calls.append((tuple(source_globs), dest_dir))

        task = Task("scripts", RULE, transform, base_path=Path("/site"))
        result = asyncio.run(task.run())

        assert result.ok
        assert result.task_id == "scripts"
        assert calls == [(("/site/src/*.js", "/site/vendor/*.js"), Path("/site/build/js"))]

    def test_async_transform(self):
        calls = []

        async def transform(source_globs, dest_dir):
            await asyncio.sleep(0)
            calls.append(dest_dir)

        task = Task("scripts", RULE, transform, base_path=Path("/site"))
        result = asyncio.run(task.run())

        assert result.ok
        assert calls == [Path("/site/build/js")]

    def test_transform_error_is_reported(self):
        def transform(source_globs, dest_dir):
            raise TransformError("syntax error")

        task = Task("scripts", RULE, transform)
        result = asyncio.run(task.run())

        assert result.failed
        assert isinstance(result.error, TransformError)
        assert str(result.error) == "syntax error"
        assert result.error.task_id == "scripts"

    def test_unexpected_error_is_wrapped(self):
        def transform(source_globs, dest_dir):
            raise ValueError("bad value")

        task = Task("scripts", RULE, transform)
        result = asyncio.run(task.run())

        assert result.failed
        assert isinstance(result.error, TransformError)
        assert "ValueError: bad value" in str(result.error)
        assert result.duration >= 0
