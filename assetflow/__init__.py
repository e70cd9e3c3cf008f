"""assetflow: front-end asset builds with incremental rebuilds and live reload.

Example:
    import asyncio
    from assetflow import load_project
    from assetflow.cli import make_orchestrator

    project = load_project()
    asyncio.run(make_orchestrator(project).serve_forever())
"""

from .events import ChangeEvent
from .exceptions import (
    AssetflowError,
    ConfigError,
    NetworkError,
    StartupError,
    TransformError,
)
from .orchestrator import Orchestrator
from .registry import TaskRegistry
from .rules import Category, PathRule
from .scheduler import IncrementalScheduler
from .session import BuildSession, TaskState
from .task import Task, TaskResult
from .config import load_project

__version__ = '0.1.0'

__all__ = [
    'ChangeEvent',
    'AssetflowError',
    'ConfigError',
    'NetworkError',
    'StartupError',
    'TransformError',
    'Orchestrator',
    'TaskRegistry',
    'Category',
    'PathRule',
    'IncrementalScheduler',
    'BuildSession',
    'TaskState',
    'Task',
    'TaskResult',
    'load_project',
]
