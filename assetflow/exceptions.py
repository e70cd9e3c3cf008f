"""Exceptions raised by assetflow.

Startup problems (ConfigError, StartupError) are fatal. TransformError and
NetworkError are caught at the step that raised them and reported.
"""


class AssetflowError(Exception):
    """Base class for all assetflow errors."""
    pass


class ConfigError(AssetflowError):
    """Invalid or ambiguous project configuration."""
    pass


class TransformError(AssetflowError):
    """A single task's transform failed.

    Attributes:
        task_id: Id of the failing task, if known
    """

    def __init__(self, message: str, task_id: str = None):
        super().__init__(message)
        self.task_id = task_id


class StartupError(AssetflowError):
    """Watching or serving could not be initialized."""
    pass


class NetworkError(AssetflowError):
    """A vendor asset could not be downloaded."""

    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.url = url
