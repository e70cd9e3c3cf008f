"""Command line entry point.

Usage:
    python -m assetflow [options] [command]

Commands:
    dev      fetch vendor assets, build, serve and rebuild on change (default)
    build    run every task once
    run      run the named tasks once
    clean    remove build outputs
    tasks    list tasks and their globs
    fetch    download missing vendor assets
"""

import argparse
import asyncio
import sys
from typing import List, Optional, Sequence

from .config import Project, load_project
from .exceptions import AssetflowError, ConfigError, StartupError
from .fetch import fetch_all
from .log import configure_logging
from .orchestrator import Orchestrator
from .registry import TaskRegistry
from .reload import LiveReloadSignal, NullReloadSignal
from .task import TaskResult
from .transforms import transform_for


def build_registry(project: Project) -> TaskRegistry:
    """Register the built-in transform for every rule of ``project``."""
    registry = TaskRegistry(project.settings.base_path)
    for rule in project.rules:
        registry.register(rule, transform_for(rule.category))
    return registry


def make_orchestrator(project: Project, notifier=None, reload_signal=None) -> Orchestrator:
    settings = project.settings
    if notifier is None:
        from .notifier import WatchdogNotifier
        notifier = WatchdogNotifier(settings.base_path)
    if reload_signal is None:
        reload_signal = LiveReloadSignal()
    return Orchestrator(
        build_registry(project),
        notifier,
        reload_signal,
        build_dir=settings.build_path,
        serve_options=settings.serve,
        debounce=settings.debounce,
        concurrent_chains=settings.concurrent_chains,
    )


def run_dev(project: Project, fetch: bool = True) -> int:
    """Fetch vendor assets, then serve until interrupted."""
    if fetch:
        fetch_all(project.vendor, project.settings.base_path)

    orchestrator = make_orchestrator(project)
    try:
        asyncio.run(orchestrator.serve_forever())
    except KeyboardInterrupt:
        print("\nStopped.")
    finally:
        close = getattr(orchestrator.notifier, 'close', None)
        if close is not None:
            close()
    return 0


def run_build(project: Project, task_ids: Sequence[str] = (), clean: bool = False) -> int:
    """Run all tasks (or ``task_ids``) once. Returns 1 if any failed."""
    orchestrator = make_orchestrator(project, notifier=_NoWatch(), reload_signal=NullReloadSignal())
    registry = orchestrator.registry

    if task_ids:
        try:
            tasks = [registry.get(task_id) for task_id in task_ids]
        except KeyError as e:
            print(f"Error: {e.args[0]}", file=sys.stderr)
            return 1

        async def run_selected() -> List[TaskResult]:
            return [await task.run() for task in tasks]

        results = asyncio.run(run_selected())
    else:
        registry.validate()
        results = asyncio.run(orchestrator.build_once(clean=clean))

    failed = [r for r in results if r.failed]
    for result in results:
        status = 'failed' if result.failed else 'ok'
        print(f"  {result.task_id:<10} {status:<7} {result.duration:.3f}s")
    if failed:
        print(f"{len(failed)} of {len(results)} task(s) failed", file=sys.stderr)
        return 1
    print(f"Completed {len(results)} task(s)")
    return 0


def list_tasks(project: Project) -> int:
    registry = build_registry(project)
    print(f"Base path: {registry.base_path}")
    for task in registry.all():
        print(f"  {task.id}")
        print(f"    src:   {', '.join(task.rule.source_globs)}")
        if task.rule.watch_globs:
            print(f"    watch: {', '.join(task.rule.watch_globs)}")
        print(f"    dest:  {task.rule.dest_dir}")
    return 0


def clean_outputs(project: Project) -> int:
    orchestrator = make_orchestrator(project, notifier=_NoWatch(), reload_signal=NullReloadSignal())
    removed = orchestrator.clean()
    print(f"Removed {len(removed)} director{'y' if len(removed) == 1 else 'ies'}")
    return 0


def fetch_vendor(project: Project) -> int:
    errors = fetch_all(project.vendor, project.settings.base_path)
    return 1 if errors else 0


class _NoWatch:
    """Notifier for one-shot commands, which never watch."""

    def watch(self, globs, on_change):
        raise StartupError("One-shot commands do not watch files")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Build front-end assets and serve them with live reload',
        prog='python -m assetflow',
    )
    parser.add_argument(
        '-c', '--config',
        default=None,
        help='Path to the project file (default: ./assetflow.yaml if present)',
    )
    parser.add_argument(
        '--base-path',
        default=None,
        help='Override base path for source globs',
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print debug information',
    )
    sub = parser.add_subparsers(dest='command')

    dev = sub.add_parser('dev', help='Build, serve and rebuild on change (default)')
    dev.add_argument('--no-fetch', action='store_true', help='Skip vendor downloads')
    dev.add_argument('--port', type=int, default=None, help='Preview server port')
    dev.add_argument('--host', default=None, help='Preview server host')
    dev.add_argument('--open', action='store_true', help='Open a browser')

    build = sub.add_parser('build', help='Run every task once')
    build.add_argument('--clean', action='store_true', help='Remove outputs first')

    run = sub.add_parser('run', help='Run the named tasks once')
    run.add_argument('tasks', nargs='+', metavar='TASK')

    sub.add_parser('clean', help='Remove build outputs')
    sub.add_parser('tasks', help='List tasks')
    sub.add_parser('fetch', help='Download missing vendor assets')
    return parser


def main(args: Optional[List[str]] = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = create_parser()
    parsed = parser.parse_args(args)
    configure_logging(parsed.verbose)
    command = parsed.command or 'dev'

    try:
        project = load_project(parsed.config, parsed.base_path)

        if command == 'dev':
            serve = project.settings.serve
            if getattr(parsed, 'port', None) is not None:
                serve.port = parsed.port
            if getattr(parsed, 'host', None) is not None:
                serve.host = parsed.host
            if getattr(parsed, 'open', False):
                serve.open_browser = True
            return run_dev(project, fetch=not getattr(parsed, 'no_fetch', False))
        elif command == 'build':
            return run_build(project, clean=parsed.clean)
        elif command == 'run':
            return run_build(project, task_ids=parsed.tasks)
        elif command == 'clean':
            return clean_outputs(project)
        elif command == 'tasks':
            return list_tasks(project)
        elif command == 'fetch':
            return fetch_vendor(project)

    except (ConfigError, StartupError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (FileNotFoundError, AssetflowError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if parsed.verbose:
            import traceback
            traceback.print_exc()
        return 1

    parser.error(f"unknown command: {command}")
    return 2


if __name__ == '__main__':
    sys.exit(main())
